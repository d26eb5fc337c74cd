"""
sheetseed/builder.py — Import configuration.

Two phases:
  ImportBuilder — mutable; every setter validates its argument eagerly and
                  raises INVALID_CONFIGURATION before any workbook I/O.
  ImportPlan    — immutable result of ImportBuilder.build(). Patterns are
                  compiled at this point. The builder is spent afterwards:
                  any further call raises ALREADY_BUILT.

    plan = (excel("seed/users.xlsx")
            .top(2).left(1)
            .exclude(".+_draft$")
            .with_default_value("users", "active", True)
            .with_generated_value("users", "id", sequence(100, 100))
            .build())
    plan.execute(connection)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from . import engine
from .cells import FormulaEvaluator
from .errors import AppError, ALREADY_BUILT, invalid, require, require_non_negative
from .generators import GeneratorLike, is_generator
from .io import resolve_location
from .models import Margin, Resolver, SheetFilter, identity_resolver, mapping_resolver
from .operations import Binder, OperationSequence
from .parsing import PatternLike, compile_patterns


@dataclass(frozen=True)
class ImportPlan:
    location: str
    margin: Margin = field(default_factory=Margin)
    skip_after_header: int = 0
    sheet_filter: SheetFilter = field(default_factory=SheetFilter)
    resolver: Resolver = identity_resolver
    default_values: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    value_generators: Mapping[str, Mapping[str, GeneratorLike]] = field(default_factory=dict)

    def operations(self, evaluator: Optional[FormulaEvaluator] = None) -> OperationSequence:
        """Read the workbook and return one insert operation per selected sheet."""
        return engine.run(self, evaluator)

    def execute(self, connection: Any, binder: Optional[Binder] = None) -> int:
        return self.operations().execute(connection, binder)


def _freeze_nested(maps: Dict[str, Dict[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({t: MappingProxyType(dict(cols)) for t, cols in maps.items()})


class ImportBuilder:
    """Collects import settings for one workbook. Use excel(location) to create one."""

    def __init__(self, location: str):
        self._location = resolve_location(location)
        self._left = 0
        self._top = 0
        self._skip_after_header = 0
        self._include: List[PatternLike] = []
        self._exclude: List[PatternLike] = []
        self._resolver: Resolver = identity_resolver
        self._default_values: Dict[str, Dict[str, Any]] = {}
        self._value_generators: Dict[str, Dict[str, GeneratorLike]] = {}
        self._plan: Optional[ImportPlan] = None

    @property
    def location(self) -> str:
        return self._location

    def _open(self) -> "ImportBuilder":
        if self._plan is not None:
            raise AppError(ALREADY_BUILT, "this builder has already been built")
        return self

    # ---------- Layout ----------

    def left(self, left: int) -> "ImportBuilder":
        """0-based start column of the header and data. Default 0."""
        self._open()._left = require_non_negative(left, "left")
        return self

    def top(self, top: int) -> "ImportBuilder":
        """0-based row index of the header row. Default 0."""
        self._open()._top = require_non_negative(top, "top")
        return self

    def margin(self, left: int, top: int) -> "ImportBuilder":
        return self.left(left).top(top)

    def skip_after_header(self, n: int) -> "ImportBuilder":
        """Rows between the header row and the first data row. Default 0."""
        self._open()._skip_after_header = require_non_negative(n, "skip_after_header")
        return self

    # ---------- Sheet selection ----------

    def include(self, *patterns: PatternLike) -> "ImportBuilder":
        """Only import sheets whose full name matches one of the patterns."""
        self._open()._include.extend(require(p, "include") for p in patterns)
        return self

    def exclude(self, *patterns: PatternLike) -> "ImportBuilder":
        """Skip sheets whose full name matches one of the patterns."""
        self._open()._exclude.extend(require(p, "exclude") for p in patterns)
        return self

    # ---------- Tables ----------

    def resolver(self, resolver: Any) -> "ImportBuilder":
        """
        Sheet name -> table name. Accepts a callable returning None for
        unmapped sheets, or a static mapping. Default: the sheet name itself.
        """
        self._open()
        require(resolver, "resolver")
        if isinstance(resolver, Mapping):
            self._resolver = mapping_resolver(resolver)
        elif callable(resolver):
            self._resolver = resolver
        else:
            raise invalid("resolver", f"resolver must be callable or a mapping (got {resolver!r})")
        return self

    def with_default_value(self, table: str, column: str, value: Any) -> "ImportBuilder":
        """Use value for column of every row inserted into table. None is a valid value."""
        self._open()
        require(table, "table")
        require(column, "column")
        self._default_values.setdefault(table, {})[column] = value
        return self

    def with_generated_value(self, table: str, column: str, generator: GeneratorLike) -> "ImportBuilder":
        """Ask generator for the value of column once per row inserted into table."""
        self._open()
        require(table, "table")
        require(column, "column")
        require(generator, "value_generator")
        if not is_generator(generator):
            raise invalid("value_generator", f"not a value generator: {generator!r}")
        self._value_generators.setdefault(table, {})[column] = generator
        return self

    # ---------- Finalization ----------

    def build(self) -> ImportPlan:
        self._open()
        plan = ImportPlan(
            location=self._location,
            margin=Margin(self._left, self._top),
            skip_after_header=self._skip_after_header,
            sheet_filter=SheetFilter(
                include=compile_patterns(self._include, "include"),
                exclude=compile_patterns(self._exclude, "exclude"),
            ),
            resolver=self._resolver,
            default_values=_freeze_nested(self._default_values),
            value_generators=_freeze_nested(self._value_generators),
        )
        self._plan = plan
        return plan


def excel(location: str) -> ImportBuilder:
    """
    Start configuring an import of the workbook at location.
    Raises RESOURCE_NOT_FOUND immediately when the location does not resolve.
    """
    return ImportBuilder(location)
