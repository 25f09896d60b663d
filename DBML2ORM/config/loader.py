"""Load configuration from YAML file."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union


def find_config_file(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Find config.yaml file (explicit path, else the bundled config directory)."""
    if config_path is not None:
        config_file = Path(config_path)
    else:
        config_file = Path(__file__).parent / "config.yaml"
    
    if not config_file.exists():
        raise FileNotFoundError(
            f"config.yaml not found at {config_file}. "
            f"Please create the configuration file."
        )
    
    return config_file


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from config.yaml.
    
    Args:
        config_path: Optional explicit path; defaults to the bundled config.yaml
    
    Returns:
        dict: Configuration dictionary
        
    Raises:
        FileNotFoundError: If config.yaml is not found
        yaml.YAMLError: If YAML parsing fails
    """
    config_file = find_config_file(config_path)
    
    with open(config_file, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)
    
    return config or {}


def get_config(section: Optional[str] = None, config_path: Optional[Union[str, Path]] = None) -> Any:
    """
    Get configuration value(s).
    
    Args:
        section: Optional section name (e.g., "codegen", "logging")
                 If None, returns entire config
        config_path: Optional explicit path to a config file
        
    Returns:
        Configuration value or dictionary
    """
    config = load_config(config_path)
    
    if section is None:
        return config
    
    return config.get(section) or {}
