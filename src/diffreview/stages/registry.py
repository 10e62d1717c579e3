"""Stage registry — loads YAML stage definitions, applies config filters."""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from diffreview.config.schema import DiffReviewConfig
from diffreview.stages.models import StageDefinition, StageSetupError


class StageRegistry:
    """Ordered store of stage definitions."""

    def __init__(self) -> None:
        self._stages: Dict[str, StageDefinition] = {}
        self._order: Optional[List[str]] = None

    # ---- registration ----

    def register(self, definition: StageDefinition) -> None:
        self._stages[definition.name] = definition

    def register_many(self, definitions: list[StageDefinition]) -> None:
        for d in definitions:
            self.register(d)

    # ---- queries ----

    @property
    def all_stages(self) -> List[StageDefinition]:
        return list(self._stages.values())

    def get(self, name: str) -> Optional[StageDefinition]:
        return self._stages.get(name)

    def enabled_stages(self) -> List[StageDefinition]:
        """Enabled definitions in execution order."""
        if self._order is not None:
            ordered = [self._stages[n] for n in self._order if n in self._stages]
        else:
            ordered = list(self._stages.values())
        return [d for d in ordered if d.enabled]

    # ---- config filtering ----

    def apply_config(self, config: DiffReviewConfig) -> None:
        """Enable / disable stages per config.stages.

        A non-empty ``enable`` list selects the stages and fixes their order;
        ``disable`` always wins.
        """
        enable_list = config.stages.enable
        disable_list = config.stages.disable

        if enable_list:
            unknown = [n for n in enable_list if n not in self._stages]
            if unknown:
                raise StageSetupError(f"Unknown stage(s): {', '.join(unknown)}")
            self._order = list(dict.fromkeys(enable_list))

        for stage in self._stages.values():
            if enable_list:
                stage.enabled = stage.name in enable_list
            if stage.name in disable_list:
                stage.enabled = False

    # ---- definition loading ----

    def load_definitions(self, directory: Path) -> int:
        """Load YAML stage files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_stages(path)
        return count

    def _load_yaml_stages(self, path: Path) -> int:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise StageSetupError(f"Failed to load {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict) or "name" not in entry:
                raise StageSetupError(f"{path}: every stage needs a 'name'")
            command = entry.get("command")
            if isinstance(command, str):
                command = shlex.split(command)
            definition = StageDefinition(
                name=str(entry["name"]),
                description=entry.get("description", ""),
                command=command,
                entry_point=entry.get("entry_point"),
                timeout=entry.get("timeout"),
                enabled=entry.get("enabled", True),
            )
            self.register(definition)
            count += 1
        return count


def build_registry(config: DiffReviewConfig, repo_root: Path) -> StageRegistry:
    """Create a populated, config-filtered stage registry."""
    registry = StageRegistry()

    stages_dir = Path(config.stages.directory)
    if not stages_dir.is_absolute():
        stages_dir = repo_root / stages_dir
    registry.load_definitions(stages_dir)

    registry.apply_config(config)
    return registry
