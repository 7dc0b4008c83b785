"""
Tests for the application factory.
"""

import movie_api.main as main_module
from movie_api.main import create_app


class TestCreateApp:
    """Test that apps are only built on request."""

    def test_import_builds_no_app(self):
        assert not hasattr(main_module, "app")

    def test_components_come_from_given_settings(self, settings, images_dir):
        app = create_app(settings)

        assert app.state.settings is settings
        assert app.state.blob_store.root == images_dir.resolve()
        assert app.state.images.search_dirs[0] == images_dir.resolve()
        assert app.state.tokens.secret_key == settings.SECRET_KEY

    def test_two_apps_do_not_share_state(self, settings):
        first, second = create_app(settings), create_app(settings)

        assert first.state.engine is not second.state.engine
