import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from core.nimbus.rendering import renderer
from utils.errors import NimbusError
from utils.logger import logger
from utils.strings import camel_to_kebab_case

NIMBUS_FML_PATH = "firefox-ios/nimbus.fml.yaml"
NIMBUS_FEATURES_PATH = "firefox-ios/nimbus-features"
NIMBUS_FLAGGABLE_FEATURE_PATH = "firefox-ios/Client/FeatureFlags/NimbusFlaggableFeature.swift"
NIMBUS_FEATURE_FLAG_LAYER_PATH = "firefox-ios/Client/Nimbus/NimbusFeatureFlagLayer.swift"
FEATURE_FLAGS_DEBUG_VIEW_CONTROLLER_PATH = (
    "firefox-ios/Client/Frontend/Settings/Main/Debug/FeatureFlags/FeatureFlagsDebugViewController.swift"
)

FEATURE_SUFFIX = "Feature"
FEATURES_DIR_NAME = "nimbus-features"
DEFAULT_DESCRIPTION = "Feature description"


def clean_feature_name(name: str) -> str:
    """Removes the "Feature" suffix from a feature name if present."""
    if name.endswith(FEATURE_SUFFIX):
        return name[: -len(FEATURE_SUFFIX)]
    return name


def feature_yaml_name(clean_name: str) -> str:
    return f"{clean_name}{FEATURE_SUFFIX}.yaml"


def read_text(path: Path) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise NimbusError(f"Could not read {path}: {e}") from e


def write_atomically(path: Path, content: str) -> None:
    """Writes content next to path first and then moves it into place."""
    path = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    except OSError as e:
        raise NimbusError(f"Could not write {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        # mkstemp creates 0600 files
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise NimbusError(f"Could not write {path}: {e}") from e


def refresh_include_block(fml_content: str, feature_files) -> str:
    """
    Rebuilds the nimbus-features include entries at the end of nimbus.fml.yaml.

    Every line mentioning nimbus-features is dropped, then one entry per feature
    file is appended in the given order.
    """
    ends_with_newline = fml_content.endswith("\n")
    kept = [line for line in fml_content.split("\n") if FEATURES_DIR_NAME not in line]
    content = "\n".join(kept).rstrip("\n")

    for file_name in feature_files:
        content += f"\n  - {FEATURES_DIR_NAME}/{file_name}"

    return content + "\n" if ends_with_newline else content


def render_nimbus_fml(repo_root: Path, adding: Iterable[str] = (), removing: Iterable[str] = ()) -> str:
    """
    Returns nimbus.fml.yaml with its include block rebuilt from the feature files.

    `adding` and `removing` name feature files that are about to be created or
    deleted, so the new content can be prepared before anything is written.

    Raises:
        NimbusError: If nimbus.fml.yaml does not exist.
    """
    fml_path = Path(repo_root) / NIMBUS_FML_PATH
    if not fml_path.is_file():
        raise NimbusError(f"nimbus.fml.yaml not found at {fml_path}")

    features_dir = Path(repo_root) / NIMBUS_FEATURES_PATH
    feature_files = set(adding)
    if features_dir.is_dir():
        feature_files.update(p.name for p in features_dir.iterdir() if p.suffix == ".yaml")
    feature_files.difference_update(removing)
    logger.debug(f"Including {len(feature_files)} feature files in {fml_path}")

    return refresh_include_block(read_text(fml_path), sorted(feature_files))


def update_nimbus_fml(repo_root: Path) -> None:
    """Updates the nimbus.fml.yaml include block with the current feature files."""
    write_atomically(Path(repo_root) / NIMBUS_FML_PATH, render_nimbus_fml(repo_root))


def render_feature_template(feature_name: str, description: Optional[str] = None) -> str:
    return renderer.render(
        "feature.yaml.j2",
        feature_name=feature_name,
        feature_key=camel_to_kebab_case(feature_name),
        description=description or DEFAULT_DESCRIPTION,
    ) + "\n"
