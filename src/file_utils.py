import importlib
import json
import yaml


def load_function_by_path(path: str):
    """
    Import a function by its full path (e.g. 'my_module.my_submodule.my_function').

    Args:
        path (str): The full dotted path to the function.

    Returns:
        The function object.
    """
    module_path, func_name = path.rsplit('.', 1)

    module = importlib.import_module(module_path)
    return getattr(module, func_name)


def read_yaml(file_path: str) -> dict:
    """
    Read and parse a YAML file.

    Args:
        file_path: Path to the YAML file.

    Returns:
        Dictionary containing the parsed YAML content.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


def read_json(file_path: str):
    """
    Read and parse a JSON file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        The parsed JSON content.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)
