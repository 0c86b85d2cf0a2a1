"""Domain port for turning a live network into portable data and back."""

from __future__ import annotations

from typing import Any, Dict, Protocol


class IModelCodec(Protocol):
    """Serializes a network as ``modelTopology``/``weightSpecs``/``weightData``."""

    def encode(self, model: Any) -> Dict[str, Any]:
        """Return the topology, weight specs and base64 weight buffer."""
        ...

    def decode(self, payload: Dict[str, Any]) -> Any:
        """Rebuild a network from an encoded payload.

        Raises:
            ValueError: If the payload is incomplete or inconsistent.
        """
        ...
