"""
Compose manifest parsing.

Extracts service names and image references from a compose file:
- Service names come from ``docker compose config --services`` when a compose
  tool is on the search path, or from a structural scan of the file otherwise.
- Images are scraped from each service's block of the manifest text.
"""

import re
import shutil
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ark.core.executor import CommandExecutor
from ark.core.logger import get_logger
from ark.docker.models import ComposeService

logger = get_logger(__name__)

# A bare "key:" line (the key may be quoted), optionally followed by a comment
HEADER_RE = re.compile(
    r'^(?P<indent>[ \t]*)(?P<quote>["\']?)(?P<name>[A-Za-z0-9_.-]+)(?P=quote):[ \t]*(?:#.*)?$'
)
IMAGE_RE = re.compile(r'^[ \t]+image:[ \t]*(?P<image>[^\n#]*)')
SERVICES_RE = re.compile(r'^services:[ \t]*(?:#.*)?$')

# Top-level keys of a compose file that never name a service
RESERVED_TOP_LEVEL = {'services', 'volumes', 'networks', 'configs', 'secrets', 'version', 'name', 'include'}


def _indent_width(indent: str) -> int:
    return len(indent.expandtabs(2))


def _clean_value(value: str) -> Optional[str]:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        value = value[1:-1].strip()
    return value or None


def _leading(line: str) -> int:
    return _indent_width(line[:len(line) - len(line.lstrip())])


def _service_headers(lines: List[str]) -> List[Tuple[int, str, int]]:
    """Locate service header lines as (line index, name, indent).

    Service headers are the bare ``name:`` keys one level under ``services:``.
    Files without a ``services:`` section (the legacy v1 layout) declare their
    services as top-level keys.
    """
    start = next((i for i, line in enumerate(lines) if SERVICES_RE.match(line)), None)

    headers: List[Tuple[int, str, int]] = []
    if start is None:
        for index, line in enumerate(lines):
            header = HEADER_RE.match(line)
            if header and not header.group('indent'):
                name = header.group('name')
                if name not in RESERVED_TOP_LEVEL and not name.startswith('x-'):
                    headers.append((index, name, 0))
        return headers

    service_indent = None
    for index in range(start + 1, len(lines)):
        line = lines[index]
        if not line.strip() or line.lstrip().startswith('#'):
            continue
        indent = _leading(line)
        if indent == 0:
            break
        if service_indent is None:
            service_indent = indent
        if indent != service_indent:
            continue
        header = HEADER_RE.match(line)
        if header:
            headers.append((index, header.group('name'), indent))
    return headers


def scan_service_names(text: str) -> List[str]:
    """Recover service names from the raw manifest text."""
    names: List[str] = []
    for _, name, _ in _service_headers(text.splitlines()):
        if name not in names:
            names.append(name)
    return names


def image_for_service(text: str, service_name: str) -> Optional[str]:
    """Scrape the image of one service from the manifest text.

    The search is scoped to the lines indented under the service header, so a
    service without an image never picks up its neighbour's.
    """
    lines = text.splitlines()
    for index, name, header_indent in _service_headers(lines):
        if name != service_name:
            continue

        block_indent = _block_indent(lines, index)
        for body in lines[index + 1:]:
            if not body.strip() or body.lstrip().startswith('#'):
                continue
            if _leading(body) <= header_indent:
                break
            image = IMAGE_RE.match(body)
            if image and _leading(body) == block_indent:
                return _clean_value(image.group('image'))
        return None
    return None


def _block_indent(lines: List[str], header_index: int) -> Optional[int]:
    """Indent of the first key in the block under a header."""
    for body in lines[header_index + 1:]:
        if body.strip() and not body.lstrip().startswith('#'):
            return _leading(body)
    return None


class ComposeManifestParser:
    """Lists the services declared in a compose manifest."""

    def __init__(self, executor: Optional[CommandExecutor] = None):
        self.executor = executor or CommandExecutor()

    def parse_services(self, path: Union[str, Path]) -> List[ComposeService]:
        """Return the services of the manifest at ``path``.

        Any read or parse failure yields an empty list, meaning no services found.
        """
        manifest = Path(path).expanduser()
        try:
            text = manifest.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read compose file {manifest}: {e}")
            return []

        try:
            names = self._names_from_tool(manifest)
            if names is None:
                logger.debug(f"Falling back to manual parsing of {manifest}")
                names = scan_service_names(text)

            return [
                ComposeService(name=name, image=image_for_service(text, name))
                for name in names
            ]
        except (re.error, ValueError) as e:
            logger.error(f"Failed to parse compose file {manifest}: {e}")
            return []

    def _names_from_tool(self, manifest: Path) -> Optional[List[str]]:
        """Ask the compose tool for service names; None when it is unavailable or fails."""
        commands = []
        if shutil.which('docker'):
            commands.append(['docker', 'compose', '-f', str(manifest), 'config', '--services'])
        if shutil.which('docker-compose'):
            commands.append(['docker-compose', '-f', str(manifest), 'config', '--services'])

        for command in commands:
            result = self.executor.execute(command, cwd=manifest.parent)
            if result.success:
                return [line.strip() for line in result.output.splitlines() if line.strip()]
            logger.debug(f"{command[0]} config failed: {result.error}")

        return None
