"""
Unit tests for Streamlit authentication handlers.
"""

from unittest.mock import MagicMock, patch

import pytest

from tagallery.services.auth import CloudIAPAuthService
from tagallery.ui.handlers.auth import (
    authenticate_user,
    get_session_auth_service,
    handle_logout,
    require_authentication,
)


@pytest.fixture
def mock_st(session_state):
    with patch("tagallery.ui.handlers.auth.st") as mock_st:
        mock_st.session_state = session_state
        mock_st.context.headers = {}
        yield mock_st


class TestAuthHandlers:
    """Test authentication handler functions."""

    def test_session_auth_service_created_once(self, mock_st):
        service = get_session_auth_service()

        assert isinstance(service, CloudIAPAuthService)
        assert get_session_auth_service() is service

    def test_authenticate_user_success(self, mock_st, mock_user):
        auth_service = MagicMock()
        auth_service.authenticate_request.return_value = mock_user

        assert authenticate_user(auth_service) is mock_user

        assert mock_st.session_state.authenticated is True
        assert mock_st.session_state.user_email == "test@example.com"
        assert mock_st.session_state.auth_error is None

    def test_authenticate_user_passes_request_headers(self, mock_st, test_data_factory):
        mock_st.context.headers = test_data_factory.create_iap_headers(user_id="from-header")

        user = authenticate_user(CloudIAPAuthService(development_mode=False))

        assert user.user_id == "from-header"

    def test_authenticate_user_failure(self, mock_st):
        auth_service = MagicMock()
        auth_service.authenticate_request.return_value = None

        assert authenticate_user(auth_service) is None

        assert mock_st.session_state.authenticated is False
        assert mock_st.session_state.user_id is None
        assert mock_st.session_state.auth_error

    def test_handle_logout(self, mock_st):
        auth_service = MagicMock()
        mock_st.session_state.update(authenticated=True, current_page="gallery", current_gallery_id="g1")

        handle_logout(auth_service)

        auth_service.clear_authentication.assert_called_once()
        assert mock_st.session_state.authenticated is False
        assert mock_st.session_state.current_page == "home"
        mock_st.rerun.assert_called_once()

    def test_require_authentication(self, mock_st):
        mock_st.session_state.authenticated = True
        assert require_authentication() is True

    def test_require_authentication_shows_error(self, mock_st):
        mock_st.session_state.update(authenticated=False, auth_error="Cloud IAP authentication required")

        assert require_authentication() is False
        mock_st.error.assert_called_once()
