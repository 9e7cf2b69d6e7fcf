"""Asset registry — the single owner of per-asset ledger records."""
from __future__ import annotations

import copy
import logging
from typing import Any

from ..errors import AssetAlreadyRegistered, UnknownAsset
from ..models import AssetPosition, LeverageParameters

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Per-asset records and leverage parameters, in registration order."""

    def __init__(self) -> None:
        self._positions: dict[str, AssetPosition] = {}
        self._params: dict[str, LeverageParameters] = {}

    def __contains__(self, asset: object) -> bool:
        return asset in self._positions

    def assets(self) -> list[str]:
        return list(self._positions)

    def register(self, asset: str, params: LeverageParameters) -> AssetPosition:
        if asset in self._positions:
            raise AssetAlreadyRegistered(asset)
        position = AssetPosition(asset=asset)
        self._positions[asset] = position
        self._params[asset] = params
        logger.info("Registered %s (collateral factor %s)", asset, params.collateral_factor)
        return position

    def remove(self, asset: str) -> None:
        self.position(asset)
        del self._positions[asset]
        del self._params[asset]
        logger.info("Deregistered %s", asset)

    def position(self, asset: str) -> AssetPosition:
        try:
            return self._positions[asset]
        except KeyError:
            raise UnknownAsset(asset) from None

    def params(self, asset: str) -> LeverageParameters:
        try:
            return self._params[asset]
        except KeyError:
            raise UnknownAsset(asset) from None

    def snapshot(self) -> Any:
        return copy.deepcopy(self._positions), dict(self._params)

    def restore(self, state: Any) -> None:
        self._positions, self._params = state
