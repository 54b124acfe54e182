from pathlib import Path
from typing import List, NamedTuple, Optional

from config.models import Repo
from core.herald import Herald
from core.nimbus.editors import (
    FeatureFlagsDebugViewControllerEditor,
    NimbusFeatureFlagLayerEditor,
    NimbusFlaggableFeatureEditor,
)
from core.nimbus.helpers import (
    FEATURE_FLAGS_DEBUG_VIEW_CONTROLLER_PATH,
    NIMBUS_FEATURE_FLAG_LAYER_PATH,
    NIMBUS_FEATURES_PATH,
    NIMBUS_FML_PATH,
    NIMBUS_FLAGGABLE_FEATURE_PATH,
    clean_feature_name,
    feature_yaml_name,
    read_text,
    render_feature_template,
    render_nimbus_fml,
    update_nimbus_fml,
    write_atomically,
)
from utils.errors import NimbusError
from utils.logger import logger

MIN_FEATURE_NAME_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 100


class PlannedWrite(NamedTuple):
    path: Path
    content: str
    message: str


class NimbusFeatureManager:
    """
    Adds and removes Nimbus feature flags across the firefox-ios sources.

    Touches the feature YAML, nimbus.fml.yaml, NimbusFlaggableFeature.swift,
    NimbusFeatureFlagLayer.swift and, for QA-visible flags,
    FeatureFlagsDebugViewController.swift.
    """

    def __init__(self, repo: Repo, herald: Herald):
        self.repo = repo
        self.herald = herald
        root = Path(repo.root)
        self.features_dir = root / NIMBUS_FEATURES_PATH
        self.fml_path = root / NIMBUS_FML_PATH
        self.flaggable_feature = NimbusFlaggableFeatureEditor(root / NIMBUS_FLAGGABLE_FEATURE_PATH)
        self.flag_layer = NimbusFeatureFlagLayerEditor(root / NIMBUS_FEATURE_FLAG_LAYER_PATH)
        self.debug_settings = FeatureFlagsDebugViewControllerEditor(root / FEATURE_FLAGS_DEBUG_VIEW_CONTROLLER_PATH)

    def refresh(self) -> None:
        self.herald.declare("Updating nimbus.fml.yaml include block...")
        update_nimbus_fml(self.repo.root)
        self.herald.declare("Successfully updated nimbus.fml.yaml", as_conclusion=True)


    def add(
        self,
        feature_name: str,
        qa: bool = False,
        user_toggleable: bool = False,
        description: Optional[str] = None,
    ) -> str:
        """
        Creates the feature YAML and wires the feature into every Swift file.

        Every new file content is prepared before the first write, so a missing
        insertion point leaves the checkout untouched.

        Args:
            feature_name: camelCase name, with or without the "Feature" suffix.
            qa: Also add a toggle to the QA (debug) settings screen.
            user_toggleable: Give the feature its own featureKey case, to be filled in by hand.
            description: Description written into the feature YAML.

        Returns:
            The feature name without the "Feature" suffix.

        Raises:
            NimbusError: If the feature already exists or a file cannot be edited.
        """
        name = clean_feature_name(feature_name)
        yaml_name = feature_yaml_name(name)
        yaml_path = self.features_dir / yaml_name

        self.herald.begin(f"Adding feature '{name}'...")
        if yaml_path.exists():
            raise NimbusError(f"Feature YAML file already exists: {yaml_path}")
        self._require_files(qa)

        writes = [
            PlannedWrite(
                yaml_path,
                render_feature_template(f"{name}Feature", description),
                f"Creating feature file: {NIMBUS_FEATURES_PATH}/{yaml_name}",
            ),
            PlannedWrite(self.fml_path, render_nimbus_fml(self.repo.root, adding=[yaml_name]), "Updating nimbus.fml.yaml..."),
            PlannedWrite(
                self.flaggable_feature.path,
                self.flaggable_feature.with_feature(
                    read_text(self.flaggable_feature.path), name, debug=qa, user_toggleable=user_toggleable
                ),
                "Updating NimbusFlaggableFeature.swift...",
            ),
            PlannedWrite(
                self.flag_layer.path,
                self.flag_layer.with_feature(read_text(self.flag_layer.path), name),
                "Updating NimbusFeatureFlagLayer.swift...",
            ),
        ]
        if qa:
            writes.append(PlannedWrite(
                self.debug_settings.path,
                self.debug_settings.add_setting(read_text(self.debug_settings.path), name),
                "Updating FeatureFlagsDebugViewController.swift...",
            ))

        self._apply(writes)

        self.herald.declare(f"Successfully added feature '{name}'", as_conclusion=True)
        self.herald.declare("Please remember to add this feature to the feature flag spreadsheet.")
        return name

    def remove(self, feature_name: str) -> str:
        """
        Removes a feature from every location it was added to.

        All files are checked and their new content prepared before anything is
        changed; if a step fails no file is touched.

        Returns:
            The feature name without the "Feature" suffix.

        Raises:
            NimbusError: If the feature is missing from any required location.
        """
        name = clean_feature_name(feature_name)
        yaml_name = feature_yaml_name(name)
        yaml_path = self.features_dir / yaml_name

        self.herald.begin(f"Removing feature '{name}'...")

        self.herald.declare("Validating removal...")
        if not yaml_path.is_file():
            raise NimbusError(f"Feature YAML file not found: {yaml_path}")
        self._require_files()
        validation = self.flaggable_feature.validate_removal(name)
        self.flag_layer.validate_removal(name)
        in_debug_settings = self.debug_settings.path.is_file() and self.debug_settings.feature_exists(name)
        logger.debug(f"Removal plan for '{name}': {validation}, in debug settings: {in_debug_settings}")

        writes = [
            PlannedWrite(self.fml_path, render_nimbus_fml(self.repo.root, removing=[yaml_name]), "Updating nimbus.fml.yaml..."),
            PlannedWrite(
                self.flaggable_feature.path,
                self.flaggable_feature.without_feature(
                    read_text(self.flaggable_feature.path),
                    name,
                    is_in_debug_key=validation.is_in_debug_key,
                    is_user_toggleable=validation.is_user_toggleable,
                ),
                "Updating NimbusFlaggableFeature.swift...",
            ),
            PlannedWrite(
                self.flag_layer.path,
                self.flag_layer.without_feature(read_text(self.flag_layer.path), name),
                "Updating NimbusFeatureFlagLayer.swift...",
            ),
        ]
        if in_debug_settings:
            writes.append(PlannedWrite(
                self.debug_settings.path,
                self.debug_settings.remove_setting(read_text(self.debug_settings.path), name),
                "Updating FeatureFlagsDebugViewController.swift...",
            ))

        self.herald.declare("Removing from all locations...")

        self.herald.declare(f"Removing feature file: {NIMBUS_FEATURES_PATH}/{yaml_name}")
        try:
            yaml_path.unlink()
        except OSError as e:
            raise NimbusError(f"Could not remove {yaml_path}: {e}") from e

        self._apply(writes)

        self.herald.declare(f"Successfully removed feature '{name}'", as_conclusion=True)
        return name

    def _apply(self, writes: List[PlannedWrite]) -> None:
        for write in writes:
            self.herald.declare(write.message)
            write_atomically(write.path, write.content)
            logger.debug(f"Wrote {write.path}")

    def _require_files(self, include_debug_settings: bool = False) -> None:
        required = [
            self.fml_path,
            self.flaggable_feature.path,
            self.flag_layer.path,
        ]
        if include_debug_settings:
            required.append(self.debug_settings.path)

        for path in required:
            if not path.is_file():
                raise NimbusError(f"Required file not found: {path}")
