# pyright: reportUnusedImport=false
# flake8: noqa

from .models import (
    langchain_models,
    create_model_from_settings,
    create_model_from_spec,
)
from .client import LangchainClient
