import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..core.config import FORCE_FULL_SCHEMA, RAW_PREVIEW_CHARS
from ..core.exceptions import UnknownToolError
from ..core.textutil import estimate_tokens, preview
from ..core.types import HandledResult, RawCapture
from ..core.validation import validate_payload
from ..schemas.base import CompactModel, ShapeModel

logger = logging.getLogger(__name__)

# Exit-code meanings. A tool's table maps every code it documents to one of these.
CLEAN = "clean"
ISSUES = "issues"
INTERNAL_ERROR = "internal_error"
NOTHING_TO_DO = "nothing_to_do"
FATAL = "fatal"

SUCCESS_MEANINGS = frozenset({CLEAN, NOTHING_TO_DO})


class ToolAdapter(ABC):
    name: str = "unnamed"
    description: str = "No description provided."
    # action -> (canonical model, compact model). Single-action tools use the key None.
    variants: dict[Optional[str], tuple[type[ShapeModel], type[CompactModel]]] = {}
    # Validation targets. Multi-action tools set discriminated unions here.
    schema: Any = None
    compact_schema: Any = None
    exit_codes: dict[int, str] = {0: CLEAN}

    def __init__(self):
        if not self.variants:
            logger.critical(
                f"Tool adapter {self.__class__.__name__} declares no result variants. "
                "It cannot be registered."
            )
            raise TypeError(f"{self.__class__.__name__} has no result variants")
        if self.schema is None:
            self.schema = self.variants[self.actions[0]][0]
        if self.compact_schema is None:
            self.compact_schema = self.variants[self.actions[0]][1]

    @property
    def actions(self) -> tuple[Optional[str], ...]:
        return tuple(self.variants)

    @property
    def is_multi_action(self) -> bool:
        return None not in self.variants

    def resolve_action(self, action: Optional[str]) -> Optional[str]:
        if action in self.variants:
            return action
        if action is None and not self.is_multi_action:
            return None
        raise UnknownToolError(self.name, action)

    # --- Exit-code semantics ---

    def exit_meaning(self, exit_code: int) -> str:
        if exit_code in self.exit_codes:
            return self.exit_codes[exit_code]
        return CLEAN if exit_code == 0 else FATAL

    def exit_success(self, exit_code: int) -> bool:
        return self.exit_meaning(exit_code) in SUCCESS_MEANINGS

    def degraded(self, capture: RawCapture) -> str:
        """Raw excerpt attached to results the parser could not make sense of."""
        return preview(capture.stdout or capture.stderr, RAW_PREVIEW_CHARS)

    # --- Parse / compact / format ---

    @abstractmethod
    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> ShapeModel:
        pass

    def surrogates(self, result: ShapeModel) -> dict[str, Any]:
        """Replacement values for dropped heavy fields, keyed by Python field name."""
        return {}

    def compact(self, result: ShapeModel) -> CompactModel:
        if isinstance(result, CompactModel):
            raise TypeError(
                f"{self.name}: compaction is one-way and cannot be applied to "
                f"{result.__class__.__name__}"
            )
        source = type(result)
        target = self._compact_target(source)
        data = {
            field: getattr(result, field)
            for field in target.model_fields
            if field in source.model_fields
        }
        data.update(self.surrogates(result))
        return target(**data)

    def _compact_target(self, source: type[ShapeModel]) -> type[CompactModel]:
        for canonical, compact in self.variants.values():
            if canonical is source:
                return compact
        raise TypeError(f"{self.name} has no compact form for {source.__name__}")

    @abstractmethod
    def format(self, result: ShapeModel) -> str:
        pass

    @abstractmethod
    def format_compact(self, result: CompactModel) -> str:
        pass

    def render(self, result: ShapeModel) -> str:
        if isinstance(result, CompactModel):
            return self.format_compact(result)
        return self.format(result)

    # --- Pipeline ---

    def process(
        self,
        capture: RawCapture,
        action: Optional[str] = None,
        compact: bool = False,
        auto_compact: bool = False,
        force_full: bool = FORCE_FULL_SCHEMA,
    ) -> HandledResult:
        """Parse a capture, validate it, and return the payload plus its text rendering."""
        action = self.resolve_action(action)
        result = self.parse_output(capture, action)
        payload = result.dump()
        validate_payload(self.schema, payload, name=type(result).__name__)

        use_compact = False
        if not force_full:
            if compact:
                use_compact = True
            elif auto_compact:
                structured_tokens = estimate_tokens(json.dumps(payload))
                use_compact = structured_tokens >= estimate_tokens(capture.stdout)

        if use_compact:
            compacted = self.compact(result)
            payload = compacted.dump()
            validate_payload(self.compact_schema, payload, name=type(compacted).__name__)
            text = self.format_compact(compacted)
        else:
            text = self.format(result)

        logger.debug(
            f"{self.name}{f' {action}' if action else ''}: exit {capture.exit_code}, "
            f"{'compact' if use_compact else 'full'} payload with {len(payload)} keys"
        )
        return {
            "tool": self.name,
            "action": action,
            "structured": payload,
            "text": text,
            "compact": use_compact,
        }


class MultiActionAdapter(ToolAdapter):
    """Adapter for tools whose result is a union tagged by `action`."""

    def _handler(self, prefix: str, action: str) -> Callable[..., Any]:
        method = getattr(self, f"{prefix}_{action.replace('-', '_')}", None)
        if method is None:
            raise UnknownToolError(self.name, action)
        return method

    def parse_output(self, capture: RawCapture, action: Optional[str] = None) -> ShapeModel:
        action = self.resolve_action(action)
        return self._handler("parse", action)(capture)

    def format(self, result: ShapeModel) -> str:
        return self._handler("format", result.action)(result)

    def format_compact(self, result: CompactModel) -> str:
        return self._handler("format_compact", result.action)(result)
