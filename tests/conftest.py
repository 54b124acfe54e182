import pytest

from utils.logger import setup_logger


@pytest.fixture(autouse=True)
def reset_logger():
    # CliRunner swaps sys.stderr while a command runs; point the sink back at the real one
    setup_logger(log_level="WARNING")
    yield


FLAGGABLE_FEATURE_SWIFT = """import Foundation

enum NimbusFeatureFlagID: String, CaseIterable {
    case addressAutofill
    case bookmarksRefactor
    case toolbarRefactor

    // Add flags here
    var debugKey: String? {
        switch self {
        case    .addressAutofill,
                .bookmarksRefactor,
                .toolbarRefactor:
            return rawValue
        default:
            return nil
        }
    }
}

struct NimbusFlaggableFeature: HasNimbusSearchBar {
    let featureID: NimbusFeatureFlagID

    private var featureKey: String? {
        typealias FlagKeys = PrefsKeys.FeatureFlags

        switch featureID {
        case .bookmarksRefactor:
            return FlagKeys.BookmarksRefactor
        // Cases where users do not have the option to manipulate a setting.
        case .addressAutofill,
                .toolbarRefactor:
            return nil
        }
    }
}
"""

FEATURE_FLAG_LAYER_SWIFT = """final class NimbusFeatureFlagLayer {
    public func checkNimbusConfigFor(_ featureID: NimbusFeatureFlagID,
                                     from nimbus: FxNimbus = FxNimbus.shared
    ) -> Bool {
        switch featureID {
        case .addressAutofill:
            return checkAddressAutofillFeature(from: nimbus)

        case .toolbarRefactor:
            return checkToolbarRefactorFeature(from: nimbus)
        }
    }

    private func checkAddressAutofillFeature(from nimbus: FxNimbus) -> Bool {
        return nimbus.features.addressAutofill.value().enabled
    }

    private func checkToolbarRefactorFeature(from nimbus: FxNimbus) -> Bool {
        return nimbus.features.toolbarRefactor.value().enabled
    }
}
"""

DEBUG_VIEW_CONTROLLER_SWIFT = """class FeatureFlagsDebugViewController: SettingsTableViewController {
    private func generateFeatureFlagToggleSettings() -> SettingSection {
        var children: [Setting] = [
            FeatureFlagsBoolSetting(
                with: .addressAutofill,
                titleText: format(string: "Address Autofill"),
                statusText: format(string: "Toggle Address Autofill")
            ) { [weak self] _ in
                self?.reloadView()
            },
            FeatureFlagsBoolSetting(
                with: .toolbarRefactor,
                titleText: format(string: "Toolbar Refactor"),
                statusText: format(string: "Toggle Toolbar Refactor")
            ) { [weak self] _ in
                self?.reloadView()
            },
        ]
        return SettingSection(title: nil, children: children)
    }
}
"""

NIMBUS_FML_YAML = """about:
  description: Nimbus Feature Manifest for Firefox iOS
channels:
  - developer
  - beta
include:
  - nimbus-features/addressAutofillFeature.yaml
"""


@pytest.fixture
def flaggable_feature_swift():
    return FLAGGABLE_FEATURE_SWIFT


@pytest.fixture
def feature_flag_layer_swift():
    return FEATURE_FLAG_LAYER_SWIFT


@pytest.fixture
def debug_view_controller_swift():
    return DEBUG_VIEW_CONTROLLER_SWIFT


@pytest.fixture
def firefox_repo(tmp_path):
    """A firefox-ios checkout with just the files the nimbus commands touch."""
    from config.models import NaryaConfig, Repo
    from core.nimbus import helpers

    (tmp_path / ".narya.yaml").write_text("project: firefox-ios\n")
    files = {
        helpers.NIMBUS_FML_PATH: NIMBUS_FML_YAML,
        f"{helpers.NIMBUS_FEATURES_PATH}/addressAutofillFeature.yaml": "features: {}\n",
        helpers.NIMBUS_FLAGGABLE_FEATURE_PATH: FLAGGABLE_FEATURE_SWIFT,
        helpers.NIMBUS_FEATURE_FLAG_LAYER_PATH: FEATURE_FLAG_LAYER_SWIFT,
        helpers.FEATURE_FLAGS_DEBUG_VIEW_CONTROLLER_PATH: DEBUG_VIEW_CONTROLLER_SWIFT,
    }
    for relative, contents in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents)

    return Repo(root=tmp_path, config=NaryaConfig(project="firefox-ios"))
