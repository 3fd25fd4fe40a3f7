"""
Property Tests: Session State Machine

Checks, over generated inputs, that:
1. Any install via from_credentials becomes exactly the current session
2. A failed login never changes the current session or the store
3. clear() is idempotent
"""

import httpx
import respx
from hypothesis import given, settings, strategies as st

from jwt_session import (
    APIError,
    AuthError,
    AuthenticationException,
    MemoryStore,
    Session,
    SessionConfig,
    SessionManager,
    STORAGE_KEY_ACCESS,
)


API = "https://api.example.com"
AUTH_URL = f"{API}/api/token/"

tokens = st.text(
    alphabet=st.characters(min_codepoint=33, max_codepoint=126),
    min_size=1,
    max_size=64,
)
usernames = st.text(min_size=1, max_size=32)


def make_manager() -> SessionManager:
    return SessionManager(SessionConfig(api_address=API, storage=MemoryStore()))


@settings(max_examples=50, deadline=None)
@given(username=usernames, access=tokens, refresh=tokens)
def test_from_credentials_becomes_current(username: str, access: str, refresh: str):
    with make_manager() as manager:
        session = manager.from_credentials(username, access, refresh)

        assert manager.current_session() is session
        assert session == Session(username, access, refresh)
        assert session.authorization_header == f"Bearer {access}"


@settings(max_examples=50, deadline=None)
@given(status=st.integers(min_value=400, max_value=599), authenticated=st.booleans())
def test_failed_login_does_not_mutate(status: int, authenticated: bool):
    store = MemoryStore()
    with SessionManager(SessionConfig(api_address=API, storage=store)) as manager:
        before = manager.from_credentials("dave", "tok-x", "tok-y") if authenticated else None

        with respx.mock:
            respx.post(AUTH_URL).mock(return_value=httpx.Response(status))
            try:
                manager.login("bob", "pw")
            except AuthenticationException as e:
                expected = AuthError.UNAUTHORIZED if status == 401 else AuthError.API_ERROR
                assert e.cause is expected
                assert isinstance(e, APIError) == (status != 401)
            else:
                raise AssertionError("login should fail")

        assert manager.current_session() is before
        assert manager.is_authenticated() == authenticated
        assert store.get(STORAGE_KEY_ACCESS) is None


@settings(max_examples=25, deadline=None)
@given(times=st.integers(min_value=1, max_value=5), installed=st.booleans())
def test_clear_is_idempotent(times: int, installed: bool):
    with make_manager() as manager:
        if installed:
            manager.from_credentials("dave", "tok-x", "tok-y")

        for _ in range(times):
            manager.clear()
            assert manager.current_session() is None
            assert not manager.is_authenticated()
