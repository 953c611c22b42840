# SPDX-License-Identifier: Apache-2.0
from abc import ABC, abstractmethod
from typing import Any, Optional


class ILogger(ABC):
    """Canonical logger contract. Service and tooling logs pass through this interface."""

    @abstractmethod
    def info(self, msg: str, **kwargs: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def warning(self, msg: str, **kwargs: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def error(self, msg: str, error: Optional[Exception] = None, **kwargs: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def debug(self, msg: str, **kwargs: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def audit(self, action: str, actor: str, outcome: str, **details: Any) -> None:
        """Gate decisions and ledger writes."""
        raise NotImplementedError
