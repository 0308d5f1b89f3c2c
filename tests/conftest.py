import pytest

from fakes import (
    CDB_DOC,
    CDB_VERSION_DOC,
    CORE_UTIL_IS_DOC,
    PRIVATE,
    PUBLIC,
    FakeRegistries,
    gzip_reply,
    json_reply,
    make_client,
    make_settings,
)


@pytest.fixture
def registries() -> FakeRegistries:
    fake = FakeRegistries()
    fake.add("GET", f"{PRIVATE}/cdb", json_reply(CDB_DOC))
    fake.add("GET", f"{PRIVATE}/cdb/0.0.1", json_reply(CDB_VERSION_DOC))
    fake.add("GET", f"{PUBLIC}/core-util-is", json_reply(CORE_UTIL_IS_DOC))
    fake.add("GET", f"{PUBLIC}/core-util-is/1.0.1", json_reply(CORE_UTIL_IS_DOC["versions"]["1.0.1"]))
    fake.add("GET", f"{PUBLIC}/core-util-is-gzipped", gzip_reply({"success": True}))
    fake.add("GET", f"{PUBLIC}/@scope%2Fmodule", json_reply({"name": "@scope/module", "versions": {}}))
    fake.add("GET", f"{PUBLIC}/plain", {"status_code": 200, "content": b"hello", "headers": {"content-type": "text/plain"}})
    fake.add("GET", f"{PUBLIC}/server-error", {"status_code": 500, "content": b"upstream exploded",
                                               "headers": {"content-type": "text/plain"}})
    fake.add("GET", f"{PUBLIC}/-/by-field?field=name", {"status_code": 200, "content": b'{"pkg":{"name":"pkg"}}',
                                                        "headers": {"content-type": "application/json"}})
    return fake


@pytest.fixture
async def client(registries):
    async with make_client(make_settings(), registries.transport) as c:
        yield c
