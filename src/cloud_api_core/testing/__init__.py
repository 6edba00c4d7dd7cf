"""Testing utilities for clients built on cloud-api-core.

Example:
    ```python
    from cloud_api_core import Client
    from cloud_api_core.testing import FakeCredential, ScriptedTransport, create_raw_response


    async def test_get_widget_404():
        transport = ScriptedTransport(lambda request: create_raw_response(404))
        client = Client("https://example.test", FakeCredential(), ["https://example.test/"], transport=transport)
        outcome = await client.execute(GET_WIDGET, path_params={"name": "w1"})
        assert outcome.status_code == 404
    ```
"""

from cloud_api_core.testing.factories import FakeCredential, ScriptedTransport, canned_pages, create_raw_response

__all__ = ["FakeCredential", "ScriptedTransport", "canned_pages", "create_raw_response"]
