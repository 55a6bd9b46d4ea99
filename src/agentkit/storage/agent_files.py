"""
Load and write agent definition files.

Three formats are understood:

* ``agents/<name>.yml`` - YAML with ``name``, ``model``, ``instructions``, ``tools``, ``variables``
* ``<name>.agent.md`` - YAML front matter between ``---`` lines, the body is the instructions
* ``<name>.json`` - the same keys as the YAML form
"""

import json
import logging
import re
from pathlib import Path
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Tuple,
)

import yaml
from pydantic import (
    BaseModel,
    Field,
    ValidationError,
)

from agentkit.config import settings
from agentkit.core.agent_config import AgentConfig

logger = logging.getLogger(__name__)

AGENT_MD_SUFFIX = ".agent.md"
AGENT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_FRONTMATTER_RE = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)

AGENT_TEMPLATE = """\
name: {name}
model: gpt-4
instructions: |
  You are a helpful AI assistant.
  Respond clearly and concisely.
tools: []
variables: {{}}
"""


class AgentFileError(RuntimeError):
    """Raised when an agent definition cannot be read or does not validate."""


class AgentFile(BaseModel):
    """Validated content of an agent definition file."""

    name: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    instructions: str
    description: Optional[str] = None
    version: Optional[str] = None
    tools: List[str] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)

    def to_agent_config(self, config: Dict[str, str] | None = None) -> AgentConfig:
        """Build an :class:`AgentConfig`.  Tools are referenced by name only and are not attached."""
        return AgentConfig(
            name=self.name,
            model=self.model,
            instructions=self.instructions,
            config=config or {},
        )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------
def parse_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Split a Markdown document into its YAML front matter and body."""
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    meta = yaml.safe_load(match.group(1)) or {}
    if not isinstance(meta, dict):
        raise AgentFileError("front matter must be a YAML mapping")
    return meta, text[match.end() :]


def _validate(data: Any, source: str) -> AgentFile:
    if not isinstance(data, dict):
        raise AgentFileError(f"{source}: expected a mapping at the top level")
    try:
        return AgentFile.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise AgentFileError(f"{source}: invalid or missing fields: {fields}") from exc


def parse_agent_markdown(text: str, source: str = "<agent.md>") -> AgentFile:
    """Parse an ``.agent.md`` document."""
    try:
        meta, body = parse_front_matter(text)
    except yaml.YAMLError as exc:
        raise AgentFileError(f"{source}: invalid front matter: {exc}") from exc
    data = dict(meta)
    data.setdefault("model", settings.DEFAULT_MODEL)
    data["instructions"] = body.strip()
    return _validate(data, source)


def load_agent_file(path: Path) -> AgentFile:
    """Load and validate an agent definition in any supported format."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AgentFileError(f"Cannot read {path}: {exc.strerror or exc}") from exc

    if path.name.endswith(AGENT_MD_SUFFIX) or path.suffix == ".md":
        return parse_agent_markdown(text, source=str(path))
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        elif path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(text)
        else:
            raise AgentFileError(f"Unsupported agent file format: {path.suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise AgentFileError(f"{path}: cannot parse: {exc}") from exc
    return _validate(data, str(path))


def load_agent(name: str, agents_dir: Path | str | None = None) -> AgentFile:
    """Load ``<agents_dir>/<name>.yml``."""
    directory = Path(agents_dir or settings.AGENTS_DIR)
    return load_agent_file(directory / f"{name}.yml")


# ---------------------------------------------------------------------------
# Discovery / writing
# ---------------------------------------------------------------------------
def list_agent_files(agents_dir: Path | str | None = None) -> List[Path]:
    """Return the ``.yml`` definitions in *agents_dir*, sorted; empty if the directory is missing."""
    directory = Path(agents_dir or settings.AGENTS_DIR)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix == ".yml")


def write_agent_template(name: str, agents_dir: Path | str | None = None) -> Path:
    """Create ``<agents_dir>/<name>.yml`` from the default template."""
    directory = Path(agents_dir or settings.AGENTS_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}.yml"
    path.write_text(AGENT_TEMPLATE.format(name=name), encoding="utf-8")
    logger.debug("Wrote agent template %s", path)
    return path


def find_agent_markdown(directory: Path | str = ".") -> Path | None:
    """Return the first ``*.agent.md`` file in *directory*, if any."""
    matches = sorted(Path(directory).glob(f"*{AGENT_MD_SUFFIX}"))
    return matches[0] if matches else None


def get_install_dir(project_root: Path | str = ".") -> Path:
    """Where ``install`` writes agents: the first entry of ``paths`` in ``agent.json``."""
    root = Path(project_root)
    manifest = root / "agent.json"
    if manifest.is_file():
        try:
            paths = json.loads(manifest.read_text(encoding="utf-8")).get("paths") or []
        except (json.JSONDecodeError, AttributeError) as exc:
            raise AgentFileError(f"Invalid agent.json: {exc}") from exc
        if paths:
            return root / paths[0]
    return root / settings.AGENTS_DIR


def is_valid_agent_name(name: str) -> bool:
    return bool(AGENT_NAME_PATTERN.match(name))
