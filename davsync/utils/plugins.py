# DAVSync Plugin Loading
# Resolve "module:attribute" import paths to collaborator factories

import importlib
from typing import Any


def load_object(import_path: str) -> Any:
    """
    Import an object from a ``module:attribute`` path.

    Args:
        import_path: Path such as ``"mypackage.dav:make_transport"``.

    Returns:
        The referenced object.

    Raises:
        ValueError: If the path is not in ``module:attribute`` form.
        ImportError: If the module or attribute cannot be found.
    """
    module_name, sep, attr_path = import_path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Invalid import path '{import_path}', expected 'module:attribute'")

    obj: Any = importlib.import_module(module_name)
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ImportError(f"'{module_name}' has no attribute '{attr_path}'") from e
    return obj
