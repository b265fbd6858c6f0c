"""Label, ignore and compute overrides from the lm-sensors configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Sequence, Set, Union

from services.formula import CompiledFormula, FormulaError, compile_formula
from services.probe import FilesystemProbe
from settings import DEFAULT_CONFIG_PATHS

logger = logging.getLogger(__name__)

IGNORE_MARKER = "ignore"


@dataclass(frozen=True)
class LabelOverride:
    text: str


class _Ignore:
    __slots__ = ()

    def __repr__(self) -> str:
        return "IGNORE"


IGNORE = _Ignore()

LabelEntry = Union[LabelOverride, _Ignore]


def _strip_quotes(value: str) -> str:
    value = value.lstrip().lstrip('"')
    return value.partition('"')[0].strip()


def _chip_matches(line: str, driver: str) -> bool:
    for token in line.split()[1:]:
        pattern = token.split("*", 1)[0]
        if pattern.startswith('"'):
            pattern = pattern[1:]
        if pattern and pattern.startswith(driver):
            return True
    return False


class ConfigOverrideStore:
    """Answers override lookups keyed by ``driver/channel``.

    ``load`` parses the first readable configuration file once per driver;
    the file is assumed not to change while the process runs.
    """

    def __init__(
        self,
        config_paths: Sequence[str] = DEFAULT_CONFIG_PATHS,
        probe: Optional[FilesystemProbe] = None,
    ) -> None:
        self.config_paths = tuple(config_paths)
        self._probe = probe or FilesystemProbe()
        self._labels: Dict[str, LabelEntry] = {}
        self._formulas: Dict[str, CompiledFormula] = {}
        self._loaded: Set[str] = set()
        self._config_text: Optional[str] = None
        self._config_read = False

    @property
    def loaded_drivers(self) -> FrozenSet[str]:
        return frozenset(self._loaded)

    def load(self, driver: str) -> None:
        if driver in self._loaded:
            return
        self._loaded.add(driver)

        text = self._read_config()
        if text is None:
            return

        before = len(self._labels) + len(self._formulas)
        self._parse(driver, text)
        added = len(self._labels) + len(self._formulas) - before
        logger.debug("Loaded %d sensor overrides", added, extra={"driver": driver})

    def label_for(self, driver: str, channel: str) -> Optional[str]:
        entry = self._labels.get(f"{driver}/{channel}")
        if isinstance(entry, LabelOverride):
            return entry.text
        return None

    def is_ignored(self, driver: str, channel: str) -> bool:
        return self._labels.get(f"{driver}/{channel}") is IGNORE

    def formula_for(self, driver: str, channel: str) -> Optional[CompiledFormula]:
        return self._formulas.get(f"{driver}/{channel}")

    def _read_config(self) -> Optional[str]:
        if not self._config_read:
            self._config_read = True
            for path in self.config_paths:
                text = self._probe.read_text(path)
                if text is not None:
                    logger.info("Using sensors configuration %s", path, extra={"path": path})
                    self._config_text = text
                    break
            else:
                logger.info("No sensors configuration found; overrides disabled")
        return self._config_text

    def _parse(self, driver: str, text: str) -> None:
        active = False
        for raw_line in text.splitlines():
            line = raw_line.split("#", 1)[0]
            if not line:
                continue

            if active and "label" in line:
                self._parse_label(driver, line.split("label", 1)[1])
            elif active and "ignore" in line:
                self._parse_ignore(driver, line.split("ignore", 1)[1])
            elif active and "compute" in line:
                self._parse_compute(driver, line.split("compute", 1)[1])
            elif line.startswith("chip"):
                if active:
                    break
                active = _chip_matches(line, driver)

    def _parse_label(self, driver: str, rest: str) -> None:
        tokens = rest.split()
        if len(tokens) < 2:
            return
        value = _strip_quotes(" ".join(tokens[1:]))
        if value:
            self._labels[f"{driver}/{tokens[0]}"] = LabelOverride(value)

    def _parse_ignore(self, driver: str, rest: str) -> None:
        if " " not in rest:
            return
        channel = rest.strip()
        if channel:
            self._labels[f"{driver}/{channel}"] = IGNORE

    def _parse_compute(self, driver: str, rest: str) -> None:
        tokens = rest.split()
        if not tokens or tokens[0].startswith(","):
            return

        channel, parts = tokens[0], []
        for token in tokens[1:]:
            head, comma, _ = token.partition(",")
            parts.append(head)
            if comma:
                break
        expression = "".join(parts)
        if not expression:
            return

        key = f"{driver}/{channel}"
        try:
            self._formulas[key] = compile_formula(expression)
        except FormulaError as exc:
            logger.warning(
                "Skipping compute override %r",
                expression,
                extra={"channel": key, "reason": str(exc)},
            )
