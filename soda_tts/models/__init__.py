"""Datatype package exports."""

from .datatypes import ModelOption, ProviderSettings, SynthesisRequest, Voice

__all__ = ["ModelOption", "ProviderSettings", "SynthesisRequest", "Voice"]
