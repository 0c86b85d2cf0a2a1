"""
Keras Model Codec - Infrastructure Layer

Encodes a Keras network as a JSON-safe payload: the model config as
``modelTopology``, one ``{name, shape, dtype}`` entry per weight tensor as
``weightSpecs`` and the concatenated little-endian tensor buffers as base64
``weightData``. Decoding rebuilds the network from that payload alone.
"""

from __future__ import annotations

import base64
import binascii
import json
import math
from typing import Any, Dict, List

import numpy as np
import structlog
from tensorflow.keras.models import model_from_json  # type: ignore
from tensorflow.keras.optimizers import Adam  # type: ignore

from src.domain.ports.model_codec import IModelCodec

logger = structlog.get_logger(__name__)


class KerasModelCodec(IModelCodec):
    """Portable topology + weights encoding for Keras models."""

    def __init__(self, learning_rate: float = 0.001):
        self.learning_rate = learning_rate

    def encode(self, model: Any) -> Dict[str, Any]:
        specs: List[Dict[str, Any]] = []
        buffers: List[bytes] = []

        for variable, value in zip(model.weights, model.get_weights()):
            array = np.asarray(value)
            little_endian = array.astype(array.dtype.newbyteorder("<"), copy=False)
            specs.append(
                {
                    "name": getattr(variable, "path", variable.name),
                    "shape": list(array.shape),
                    "dtype": array.dtype.name,
                }
            )
            buffers.append(little_endian.tobytes())

        weight_data = b"".join(buffers)
        logger.debug(
            "model_codec.encoded", tensors=len(specs), size_bytes=len(weight_data)
        )

        return {
            "modelTopology": json.loads(model.to_json()),
            "weightSpecs": specs,
            "weightData": base64.b64encode(weight_data).decode("ascii"),
        }

    def decode(self, payload: Dict[str, Any]) -> Any:
        topology = payload.get("modelTopology")
        specs = payload.get("weightSpecs")
        weight_data = payload.get("weightData")

        if not isinstance(topology, dict):
            raise ValueError("modelTopology must be an object")
        if not isinstance(specs, list):
            raise ValueError("weightSpecs must be a list")
        if not isinstance(weight_data, str):
            raise ValueError("weightData must be a base64 string")

        try:
            buffer = base64.b64decode(weight_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"weightData is not valid base64: {exc}") from exc

        weights = self._split_weights(buffer, specs)

        try:
            model = model_from_json(json.dumps(topology))
            model.set_weights(weights)
        except (ValueError, TypeError, KeyError) as exc:
            raise ValueError(f"Cannot rebuild model from topology: {exc}") from exc

        model.compile(
            optimizer=Adam(learning_rate=self.learning_rate),
            loss="mean_squared_error",
            metrics=["mae"],
        )

        logger.debug("model_codec.decoded", tensors=len(weights))
        return model

    @staticmethod
    def _split_weights(buffer: bytes, specs: List[Any]) -> List[np.ndarray]:
        weights: List[np.ndarray] = []
        offset = 0

        for index, spec in enumerate(specs):
            try:
                dtype = np.dtype(spec["dtype"]).newbyteorder("<")
                shape = tuple(int(dim) for dim in spec["shape"])
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"weightSpecs[{index}] is malformed: {exc}") from exc

            count = math.prod(shape)
            size = count * dtype.itemsize
            if offset + size > len(buffer):
                raise ValueError(
                    f"weightData holds {len(buffer)} bytes, "
                    f"weightSpecs need more than {offset + size}"
                )

            array = np.frombuffer(buffer, dtype=dtype, count=count, offset=offset)
            weights.append(array.reshape(shape).astype(dtype.newbyteorder("=")))
            offset += size

        if offset != len(buffer):
            raise ValueError(
                f"weightData holds {len(buffer)} bytes, weightSpecs describe {offset}"
            )
        return weights
