"""devdigest - Weekly development newsletter generation and delivery"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so lightweight modules (store, renderer) don't pull in the LLM SDKs
def __getattr__(name: str):
    if name == "Pipeline":
        from devdigest.pipeline import Pipeline

        return Pipeline

    if name == "RecipientStore":
        from devdigest.storage.recipients import RecipientStore

        return RecipientStore

    if name == "Digest":
        from devdigest.digest.models import Digest

        return Digest

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = ["Digest", "Pipeline", "RecipientStore"]
