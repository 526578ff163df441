"""
Shared utilities for Gemini Batch Manager.

Submodules:
    clients:     Gemini API client creation
    datasource:  Text extraction from CSV columns and JSON fields
    settings:    User settings file (YAML)
    misc:        Internal utilities (internal)
    environment: Environment configuration (internal)

Example Usage:
    import gemini_batch_manager as gbm

    client = gbm.utils.clients.create_gemini_client()
    texts = gbm.utils.datasource.read_text_column_csv('./data.csv', 'prompt')
    settings = gbm.utils.settings.load_settings()
"""

from . import clients
from . import datasource
from . import settings

__all__ = [
    'clients',     # gbm.utils.clients.*
    'datasource',  # gbm.utils.datasource.*
    'settings',    # gbm.utils.settings.*
]

# Internal modules not exported:
# - misc (internal utilities)
# - environment (internal environment setup)
