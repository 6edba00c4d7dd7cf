"""Tests for the pipeline executor."""

from unittest.mock import AsyncMock, patch

import pytest

from cloud_api_core.errors import AuthFailureError, TransportError
from cloud_api_core.request import Method, build_request
from cloud_api_core.testing import FakeCredential, ScriptedTransport, create_raw_response
from cloud_api_core.transport import ApiVersion, ApiVersionLocation, IdempotentOnlyRetry, Pipeline, Policy

ENDPOINT = "https://management.example.test"
SCOPES = ("https://management.example.test/",)


def _ok(request):
    return create_raw_response(200, json_body={})


class RecordingPolicy(Policy):
    def __init__(self, name, calls):
        self.name = name
        self.calls = calls

    async def send(self, request, next_send):
        self.calls.append(f"{self.name}:before")
        response = await next_send(request)
        self.calls.append(f"{self.name}:after")
        return response


class TestApiVersion:
    @pytest.mark.unit
    def test_appends_query_parameter(self):
        request = build_request(ENDPOINT, Method.GET, "/rules", query={"$top": 5})

        applied = ApiVersion("2021-08-08").apply(request)

        assert applied.url.params.multi_items() == [("$top", "5"), ("api-version", "2021-08-08")]

    @pytest.mark.unit
    def test_existing_query_parameter_is_kept(self):
        request = build_request(ENDPOINT, Method.GET, "/rules?api-version=2019-01-01")

        applied = ApiVersion("2021-08-08").apply(request)

        assert applied.url.params.get_list("api-version") == ["2019-01-01"]

    @pytest.mark.unit
    def test_applying_twice_adds_once(self):
        version = ApiVersion("2021-08-08")
        request = build_request(ENDPOINT, Method.GET, "/rules")

        applied = version.apply(version.apply(request))

        assert applied.url.params.get_list("api-version") == ["2021-08-08"]

    @pytest.mark.unit
    def test_header_location(self):
        version = ApiVersion.header("2021-08-06")
        request = build_request("https://account.blob.example.test", Method.GET, "/logs")

        applied = version.apply(request)

        assert version.location is ApiVersionLocation.HEADER
        assert applied.header("x-ms-version") == "2021-08-06"
        assert "api-version" not in applied.url.params

    @pytest.mark.unit
    def test_existing_header_is_kept(self):
        request = build_request(
            "https://account.blob.example.test", Method.GET, "/logs", headers={"x-ms-version": "2020-10-02"}
        )

        applied = ApiVersion.header("2021-08-06").apply(request)

        assert applied.header("x-ms-version") == "2020-10-02"


class TestPipelineExecute:
    @pytest.mark.unit
    async def test_adds_api_version_and_bearer_token(self):
        credential = FakeCredential(token="token-123")
        transport = ScriptedTransport(_ok)
        pipeline = Pipeline(transport, credential=credential, scopes=SCOPES)
        request = build_request(ENDPOINT, Method.GET, "/rules")

        response = await pipeline.execute(request, ApiVersion("2021-08-08"))

        assert response.status_code == 200
        sent = transport.requests[0]
        assert sent.header("authorization") == "Bearer token-123"
        assert sent.url.params["api-version"] == "2021-08-08"
        assert credential.calls == [SCOPES]

    @pytest.mark.unit
    async def test_caller_request_is_not_modified(self):
        transport = ScriptedTransport(_ok)
        pipeline = Pipeline(transport, credential=FakeCredential(), scopes=SCOPES)
        request = build_request(ENDPOINT, Method.GET, "/rules")

        await pipeline.execute(request, ApiVersion("2021-08-08"))

        assert request.header("authorization") is None
        assert "api-version" not in request.url.params

    @pytest.mark.unit
    async def test_without_api_version(self):
        transport = ScriptedTransport(_ok)
        pipeline = Pipeline(transport, credential=FakeCredential(), scopes=SCOPES)

        await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"))

        assert "api-version" not in transport.requests[0].url.params

    @pytest.mark.unit
    async def test_without_credential_sends_no_authorization(self):
        transport = ScriptedTransport(_ok)
        pipeline = Pipeline(transport, credential=None)

        await pipeline.execute(build_request(ENDPOINT, Method.GET, "/container/blob?sig=abc"))

        assert transport.requests[0].header("authorization") is None

    @pytest.mark.unit
    async def test_token_failure_is_auth_failure_and_nothing_is_sent(self):
        transport = ScriptedTransport(_ok)
        pipeline = Pipeline(transport, credential=FakeCredential(error=RuntimeError("expired")), scopes=SCOPES)

        with pytest.raises(AuthFailureError) as exc_info:
            await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"))

        assert exc_info.value.scopes == SCOPES
        assert transport.requests == []

    @pytest.mark.unit
    async def test_transport_error_propagates(self):
        def fail(request):
            raise TransportError("connection refused")

        pipeline = Pipeline(ScriptedTransport(fail), credential=FakeCredential(), scopes=SCOPES)

        with pytest.raises(TransportError):
            await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"))

    @pytest.mark.unit
    async def test_policies_run_outermost_first(self):
        calls = []
        pipeline = Pipeline(
            ScriptedTransport(_ok),
            credential=None,
            policies=[RecordingPolicy("outer", calls), RecordingPolicy("inner", calls)],
        )

        await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"))

        assert calls == ["outer:before", "inner:before", "inner:after", "outer:after"]

    @pytest.mark.unit
    async def test_policy_sees_request_with_api_version_but_without_token(self):
        seen = []

        class Inspect(Policy):
            async def send(self, request, next_send):
                seen.append(request)
                return await next_send(request)

        pipeline = Pipeline(ScriptedTransport(_ok), credential=FakeCredential(), scopes=SCOPES, policies=[Inspect()])

        await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"), ApiVersion("2021-08-08"))

        assert seen[0].url.params["api-version"] == "2021-08-08"
        assert seen[0].header("authorization") is None

    @pytest.mark.unit
    async def test_token_acquired_for_every_retry_attempt(self):
        credential = FakeCredential()
        transport = ScriptedTransport(
            [
                lambda request: create_raw_response(503),
                lambda request: create_raw_response(503),
                _ok,
            ]
        )
        pipeline = Pipeline(
            transport, credential=credential, scopes=SCOPES, policies=[IdempotentOnlyRetry(max_retries=3)]
        )

        with patch("asyncio.sleep", new_callable=AsyncMock):
            response = await pipeline.execute(build_request(ENDPOINT, Method.GET, "/rules"), ApiVersion("2021-08-08"))

        assert response.status_code == 200
        assert len(credential.calls) == 3
        assert all(sent.header("authorization") == "Bearer fake-token" for sent in transport.requests)
        assert all(sent.url.params.get_list("api-version") == ["2021-08-08"] for sent in transport.requests)

    @pytest.mark.unit
    async def test_properties_and_aclose(self):
        transport = ScriptedTransport(_ok)
        policy = IdempotentOnlyRetry()
        pipeline = Pipeline(transport, credential=None, scopes=["a", "b"], policies=[policy])

        assert pipeline.transport is transport
        assert pipeline.policies == (policy,)
        assert pipeline.scopes == ("a", "b")

        await pipeline.aclose()
        assert transport.closed
