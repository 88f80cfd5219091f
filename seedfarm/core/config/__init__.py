"""
Configuration subsystem for Seed Farm.

- **config.py**: Static configuration from environment variables (.env support)
- **config_manager.py**: Game balance values loaded from YAML files in config/

ConfigManager is imported from its own module (it depends on the logging
subsystem, which itself reads Config):

```python
from seedfarm.core.config import Config
from seedfarm.core.config.config_manager import ConfigManager
```
"""

from seedfarm.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
