"""EDA bridge - attribute tree marshalling and OAuth2 credentials for the EDA API."""

__version__ = "0.1.0"

from .types import AttrType, AttrValue, ValueState
from .marshal import ValueMarshaller, to_native, from_native, fill_unknowns
from .schema import FieldBinding, ModelSchema, Model
from .credentials import CredentialStore
from .apiclient import EdaApiClient
from .config import load_config
from .models import ProviderConfig

__all__ = [
    "AttrType",
    "AttrValue",
    "ValueState",
    "ValueMarshaller",
    "to_native",
    "from_native",
    "fill_unknowns",
    "FieldBinding",
    "ModelSchema",
    "Model",
    "CredentialStore",
    "EdaApiClient",
    "load_config",
    "ProviderConfig",
]
