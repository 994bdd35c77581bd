from abc import ABC, abstractmethod
from typing import Any, Dict


class Workflow(ABC):
    @abstractmethod
    def _coerce_input(self, input: Any) -> Any:
        """Validate a raw payload, raising ValueError when it is unusable."""

    @abstractmethod
    def run(self, input: Dict[str, Any]) -> Dict[str, Any]:
        pass
