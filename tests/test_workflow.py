"""Tests for verb routing and adapter construction."""

import pytest

from adapters.stores import ChromeStore, EdgeStore, FirefoxStore
from core.domain.errors import ConfigurationError, ProtocolError, UnsupportedOperation
from core.domain.models import SignedArtifact, StoreKind, SubmissionRequest, Verb
from core.services.workflow import SUPPORTED_VERBS, WorkflowOrchestrator, WorkflowResult, build_store


class RecordingAdapter:
    """Store adapter double: records which verb was routed to it."""

    def __init__(self, kind, error=None):
        self.kind = kind
        self.error = error
        self.calls = []

    def _handle(self, verb, request):
        self.calls.append((verb, request))
        if self.error is not None:
            raise self.error
        return {"verb": verb, "app_id": request.app_id}

    def status(self, request):
        return self._handle("status", request)

    def insert(self, request):
        return self._handle("insert", request)

    def update(self, request):
        return self._handle("update", request)

    def publish(self, request):
        return self._handle("publish", request)

    def sign(self, request):
        return self._handle("sign", request)


class RecordingFactory:
    def __init__(self, error=None):
        self.error = error
        self.built = []

    def __call__(self, kind):
        adapter = RecordingAdapter(kind, self.error)
        self.built.append(adapter)
        return adapter


ALL_PAIRS = [(store, verb) for store in StoreKind for verb in Verb]


class TestRouting:
    @pytest.mark.parametrize(
        "store, verb",
        [pair for pair in ALL_PAIRS if pair[1] in SUPPORTED_VERBS[pair[0]]],
    )
    def test_supported_pairs_reach_matching_method(self, app_settings, store, verb):
        factory = RecordingFactory()
        orchestrator = WorkflowOrchestrator(factory, settings=app_settings)

        result = orchestrator.run(verb, SubmissionRequest(store=store, app_id="test_app_id"))

        assert result.store is store
        assert result.verb is verb
        assert result.payload == {"verb": verb.value, "app_id": "test_app_id"}
        [adapter] = factory.built
        assert adapter.kind is store
        assert [call[0] for call in adapter.calls] == [verb.value]

    @pytest.mark.parametrize(
        "store, verb",
        [pair for pair in ALL_PAIRS if pair[1] not in SUPPORTED_VERBS[pair[0]]],
    )
    def test_unsupported_pairs_fail_before_any_adapter(self, app_settings, store, verb):
        factory = RecordingFactory()
        orchestrator = WorkflowOrchestrator(factory, settings=app_settings)

        with pytest.raises(UnsupportedOperation, match=verb.value):
            orchestrator.run(verb, SubmissionRequest(store=store))

        assert factory.built == []

    def test_support_matrix(self):
        assert Verb.SIGN not in SUPPORTED_VERBS[StoreKind.CHROME]
        assert SUPPORTED_VERBS[StoreKind.EDGE] == {Verb.UPDATE, Verb.PUBLISH}
        assert Verb.PUBLISH not in SUPPORTED_VERBS[StoreKind.FIREFOX]

    def test_errors_propagate_unchanged(self, app_settings):
        error = ProtocolError("boom", status_code=500, body="oops")
        orchestrator = WorkflowOrchestrator(RecordingFactory(error), settings=app_settings)

        with pytest.raises(ProtocolError) as info:
            orchestrator.run(Verb.UPDATE, SubmissionRequest(store=StoreKind.EDGE, app_id="x"))

        assert info.value is error


class TestWorkflowResult:
    def test_models_are_dumped_by_alias(self, tmp_path):
        artifact = SignedArtifact(path=tmp_path / "a.xpi", download_url="https://amo.test/a.xpi", size=3)
        result = WorkflowResult(store=StoreKind.FIREFOX, verb=Verb.SIGN, payload=artifact)

        assert result.to_jsonable() == {
            "path": str(tmp_path / "a.xpi"),
            "download_url": "https://amo.test/a.xpi",
            "size": 3,
        }

    def test_plain_payload_is_untouched(self):
        result = WorkflowResult(store=StoreKind.CHROME, verb=Verb.STATUS, payload={"id": "x"})
        assert result.to_jsonable() == {"id": "x"}


@pytest.fixture
def store_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    values = {
        "CHROME_CLIENT_ID": "id",
        "CHROME_CLIENT_SECRET": "secret",
        "CHROME_REFRESH_TOKEN": "refresh",
        "EDGE_CLIENT_ID": "id",
        "EDGE_CLIENT_SECRET": "secret",
        "EDGE_ACCESS_TOKEN_URL": "https://login.test/token",
        "FIREFOX_CLIENT_ID": "issuer",
        "FIREFOX_CLIENT_SECRET": "secret",
    }
    for key, value in values.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


class TestBuildStore:
    @pytest.mark.parametrize(
        "kind, expected",
        [(StoreKind.CHROME, ChromeStore), (StoreKind.EDGE, EdgeStore), (StoreKind.FIREFOX, FirefoxStore)],
    )
    def test_builds_adapter_from_environment(self, store_env, app_settings, kind, expected):
        adapter = build_store(kind, settings=app_settings)
        assert isinstance(adapter, expected)
        assert adapter.kind is kind

    @pytest.mark.parametrize(
        "kind, variable",
        [
            (StoreKind.CHROME, "CHROME_REFRESH_TOKEN"),
            (StoreKind.EDGE, "EDGE_ACCESS_TOKEN_URL"),
            (StoreKind.FIREFOX, "FIREFOX_CLIENT_SECRET"),
        ],
    )
    def test_missing_credentials(self, store_env, app_settings, kind, variable):
        store_env.setenv(variable, "")

        with pytest.raises(ConfigurationError, match=variable):
            build_store(kind, settings=app_settings)

    def test_invalid_store_setting(self, store_env, app_settings):
        store_env.setenv("FIREFOX_AWAIT_TIMEOUT_SECONDS", "forever")

        with pytest.raises(ConfigurationError, match="await_timeout_seconds"):
            build_store(StoreKind.FIREFOX, settings=app_settings)
