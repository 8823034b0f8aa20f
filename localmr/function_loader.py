"""
Dynamic Function Loader for MapReduce job files
Loads user-provided Python modules defining map_function and reduce_function
"""

import importlib.util
import os

from localmr.errors import ConfigurationError


class FunctionLoader:
    """Dynamically loads user-provided map/reduce functions from Python files"""

    def __init__(self, job_file: str):
        """
        Initialize the function loader

        Args:
            job_file: Path to user's Python file containing map/reduce functions
        """
        self.job_file = job_file
        self.module = None

    def load_module(self):
        """
        Dynamically load user-provided module

        Returns:
            The loaded module object

        Raises:
            ConfigurationError: If the job file doesn't exist or cannot be imported
        """
        if not os.path.exists(self.job_file):
            raise ConfigurationError(f"Job file not found: {self.job_file}")

        module_name = f"localmr_job_{os.path.splitext(os.path.basename(self.job_file))[0]}"
        spec = importlib.util.spec_from_file_location(module_name, self.job_file)
        if spec is None or spec.loader is None:
            raise ConfigurationError(f"Failed to load job file: {self.job_file}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise ConfigurationError(f"Failed to import job file {self.job_file}: {e}") from e
        self.module = module
        return module

    def _get_function(self, name: str):
        if not self.module:
            self.load_module()

        func = getattr(self.module, name, None)
        if not callable(func):
            raise ConfigurationError(f"Job file must define '{name}'")
        return func

    def get_map_function(self):
        """
        Get map function from loaded module

        Returns:
            map_function(index, block) yielding (key, value) pairs
        """
        return self._get_function('map_function')

    def get_reduce_function(self):
        """
        Get reduce function from loaded module

        Returns:
            reduce_function(index, partition_path)
        """
        return self._get_function('reduce_function')
