"""Game file materialisation — maps generated code onto a platform layout.

Each platform has a fixed file set: one entry file receives the generated
code, the rest are static scaffolding.  ``write_game_files`` persists a
result under a timestamped directory next to a ``metadata.json`` file.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from app.errors import BadRequestError
from app.schemas import GenerationResult, Platform

logger = logging.getLogger(__name__)

METADATA_FILENAME = "metadata.json"

# Platform → (entry file for generated code, scaffolding files in order).
PLATFORM_FILES: dict[Platform, tuple[str, tuple[str, ...]]] = {
    Platform.flutter: ("lib/main.dart", ("pubspec.yaml",)),
    Platform.react_native: ("App.js", ("package.json",)),
    Platform.unity: ("GameManager.cs", ()),
    Platform.web: ("game.js", ("index.html", "style.css")),
}


# ---------------------------------------------------------------------------
# Scaffolding templates
# ---------------------------------------------------------------------------

FLUTTER_PUBSPEC = """\
name: ai_generated_game
description: AI Generated Flutter Game
version: 1.0.0+1

environment:
  sdk: '>=3.0.0 <4.0.0'

dependencies:
  flutter:
    sdk: flutter
  flame: ^1.10.0

dev_dependencies:
  flutter_test:
    sdk: flutter

flutter:
  uses-material-design: true
"""

RN_PACKAGE = {
    "name": "AIGeneratedGame",
    "version": "1.0.0",
    "dependencies": {
        "react": "^18.2.0",
        "react-native": "^0.72.0",
        "react-native-game-engine": "^1.2.0",
    },
}

WEB_HTML = """\
<!DOCTYPE html>
<html>
<head>
    <title>AI Generated Game</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <canvas id="gameCanvas" width="800" height="600"></canvas>
    <script src="game.js"></script>
</body>
</html>
"""

WEB_CSS = """\
body {
  margin: 0;
  padding: 20px;
  display: flex;
  justify-content: center;
  align-items: center;
  min-height: 100vh;
  background: #1a1a1a;
  font-family: Arial, sans-serif;
}

#gameCanvas {
  border: 2px solid #333;
  background: #000;
}
"""

_SCAFFOLDING: dict[str, str] = {
    "pubspec.yaml": FLUTTER_PUBSPEC,
    "package.json": json.dumps(RN_PACKAGE, indent=2),
    "index.html": WEB_HTML,
    "style.css": WEB_CSS,
}


def expected_files(platform: Platform) -> set[str]:
    """Return the exact set of file names produced for *platform*."""
    entry, extras = PLATFORM_FILES[Platform(platform)]
    return {entry, *extras}


def create_game_files(code: str, platform: Platform) -> dict[str, str]:
    """Lay *code* out as the fixed file set for *platform*."""
    entry, extras = PLATFORM_FILES[Platform(platform)]
    files = {name: _SCAFFOLDING[name] for name in extras}
    files[entry] = code
    return files


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def _output_dir_name(platform: Platform, now: datetime) -> str:
    return f"{Platform(platform).value}-{now.strftime('%Y%m%dT%H%M%S%fZ')}"


def _safe_target(root: Path, relative: str) -> Path:
    """Resolve *relative* under *root*, refusing paths that escape it."""
    target = (root / relative).resolve()
    if not target.is_relative_to(root.resolve()):
        raise BadRequestError(f"Refusing to write outside output dir: {relative}")
    return target


def write_game_files(result: GenerationResult, output_root: Path | str) -> Path:
    """Write *result*'s files plus ``metadata.json`` and return the directory.

    The directory is ``<output_root>/<platform>-<UTC timestamp>``.  The
    metadata lists file names only, not their contents.
    """
    now = datetime.now(timezone.utc)
    out_dir = Path(output_root) / _output_dir_name(result.platform, now)
    out_dir.mkdir(parents=True, exist_ok=False)

    for relative, content in result.files.items():
        target = _safe_target(out_dir, relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    metadata = result.model_dump(mode="json", exclude={"files", "output_dir"})
    metadata["files"] = sorted(result.files)
    (out_dir / METADATA_FILENAME).write_text(
        json.dumps(metadata, indent=2), encoding="utf-8",
    )
    logger.info("Wrote %d file(s) for %s game to %s", len(result.files), result.platform.value, out_dir)
    return out_dir
