"""
Unit tests for the config API adapter — endpoint paths and decoding.

Uses respx to mock the three /v1/config endpoints.
"""

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
import respx

from icinga_config_export.adapters.config_api import IcingaConfigApi, file_path, stage_path
from icinga_config_export.adapters.http_client import RequestTemplate
from icinga_config_export.config import ExportSettings
from icinga_config_export.domain.models import Package, StageFile
from icinga_config_export.railway import ErrorCode, ResultAssertions
from tests.conftest import BASE_URL

DIRECTOR = Package(name="director", active_stage="icinga2-1700000000-0")


@pytest.fixture()
def api(settings: ExportSettings) -> Iterator[IcingaConfigApi]:
    with httpx.Client(base_url=BASE_URL) as client:
        yield IcingaConfigApi(client, RequestTemplate.for_settings(settings))


class TestPaths:
    """Package and stage names are escaped as segments, file names as paths."""

    def test_stage_path_escapes_package_and_stage(self) -> None:
        package = Package(name="my pkg", active_stage="a/b")
        assert stage_path(package) == "/v1/config/stages/my%20pkg/a%2Fb"

    def test_file_path_keeps_separators_of_file_name(self) -> None:
        package = Package(name="my pkg", active_stage="s1")
        entry = StageFile(name="conf.d/hosts.conf", type="file")
        assert file_path(package, entry) == "/v1/config/files/my%20pkg/s1/conf.d/hosts.conf"


class TestListPackages:
    @respx.mock
    def test_decodes_name_and_active_stage(self, api: IcingaConfigApi) -> None:
        respx.get(f"{BASE_URL}/v1/config/packages").mock(
            return_value=httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "name": "director",
                            "active-stage": "icinga2-1700000000-0",
                            "stages": ["icinga2-1700000000-0"],
                        },
                        {"name": "_api"},
                    ]
                },
            )
        )
        packages = ResultAssertions.assert_success(api.list_packages())
        assert packages == [DIRECTOR, Package(name="_api", active_stage="")]

    @respx.mock
    def test_null_results_is_empty(self, api: IcingaConfigApi) -> None:
        respx.get(f"{BASE_URL}/v1/config/packages").mock(
            return_value=httpx.Response(200, json={"results": None})
        )
        assert ResultAssertions.assert_success(api.list_packages()) == []

    @respx.mock
    def test_unauthorized_is_bad_status(self, api: IcingaConfigApi, capsys) -> None:
        respx.get(f"{BASE_URL}/v1/config/packages").mock(
            return_value=httpx.Response(401, text="Unauthorized")
        )
        error = ResultAssertions.assert_failure(api.list_packages(), ErrorCode.BAD_STATUS)
        assert error.status_code == 401


class TestListStageFiles:
    @respx.mock
    def test_decodes_entries(self, api: IcingaConfigApi) -> None:
        respx.get(f"{BASE_URL}/v1/config/stages/director/icinga2-1700000000-0").mock(
            return_value=httpx.Response(
                200,
                json={
                    "results": [
                        {"name": "include.conf", "type": "file"},
                        {"name": "zones.d", "type": "directory"},
                        {"name": "zones.d/master/hosts.conf", "type": "file"},
                    ]
                },
            )
        )
        entries = ResultAssertions.assert_success(api.list_stage_files(DIRECTOR))
        assert entries == [
            StageFile(name="include.conf", type="file"),
            StageFile(name="zones.d", type="directory"),
            StageFile(name="zones.d/master/hosts.conf", type="file"),
        ]

    @respx.mock
    def test_requests_escaped_path(self, api: IcingaConfigApi) -> None:
        route = respx.route(host="icinga.example.com").mock(
            return_value=httpx.Response(200, json={"results": []})
        )
        api.list_stage_files(Package(name="my pkg", active_stage="s 1"))
        assert route.calls.last.request.url.raw_path == b"/v1/config/stages/my%20pkg/s%201"


class TestFetchFile:
    @respx.mock
    def test_returns_raw_content(self, api: IcingaConfigApi) -> None:
        content = "object Host \"web-01\" {\n  address = \"10.0.0.1\"\n}\n".encode()
        respx.get(
            f"{BASE_URL}/v1/config/files/director/icinga2-1700000000-0/zones.d/master/hosts.conf"
        ).mock(return_value=httpx.Response(200, content=content))
        entry = StageFile(name="zones.d/master/hosts.conf", type="file")
        assert ResultAssertions.assert_success(api.fetch_file(DIRECTOR, entry)) == content

    @respx.mock
    def test_not_found_is_bad_status(self, api: IcingaConfigApi, capsys) -> None:
        respx.route(host="icinga.example.com").mock(return_value=httpx.Response(404))
        entry = StageFile(name="zones.d/gone.conf", type="file")
        error = ResultAssertions.assert_failure(
            api.fetch_file(DIRECTOR, entry), ErrorCode.BAD_STATUS
        )
        assert error.status_code == 404

    @pytest.mark.parametrize(
        ("name", "raw_path"),
        [
            ("conf.d/a?b.conf", b"conf.d/a%3Fb.conf"),
            ("conf.d/a#b.conf", b"conf.d/a%23b.conf"),
            ("conf.d/a%41.conf", b"conf.d/a%2541.conf"),
            ("conf.d/my hosts.conf", b"conf.d/my%20hosts.conf"),
        ],
    )
    @respx.mock
    def test_file_name_reaches_server_intact(
        self, name: str, raw_path: bytes, api: IcingaConfigApi
    ) -> None:
        """
        GIVEN a file name holding URL delimiters or a percent sign
        WHEN fetch_file is called
        THEN the request path names exactly that file, with no query or fragment.
        """
        route = respx.route(host="icinga.example.com").mock(
            return_value=httpx.Response(200, content=b"x")
        )
        entry = StageFile(name=name, type="file")
        ResultAssertions.assert_success(api.fetch_file(DIRECTOR, entry))

        url = route.calls.last.request.url
        assert url.raw_path == b"/v1/config/files/director/icinga2-1700000000-0/" + raw_path
        assert url.query == b""
        assert url.fragment == ""


class TestNullFields:
    """
    GIVEN a listing where string fields are JSON null
    WHEN it is decoded
    THEN those fields read as empty strings instead of failing.
    """

    @respx.mock
    def test_null_package_fields(self, api: IcingaConfigApi) -> None:
        respx.get(f"{BASE_URL}/v1/config/packages").mock(
            return_value=httpx.Response(
                200,
                json={
                    "results": [
                        {"name": "director", "active-stage": None},
                        {"name": None, "active-stage": "s1"},
                    ]
                },
            )
        )
        packages = ResultAssertions.assert_success(api.list_packages())
        assert packages == [
            Package(name="director", active_stage=""),
            Package(name="", active_stage="s1"),
        ]

    @respx.mock
    def test_null_stage_entry_fields(self, api: IcingaConfigApi) -> None:
        respx.get(f"{BASE_URL}/v1/config/stages/director/icinga2-1700000000-0").mock(
            return_value=httpx.Response(
                200, json={"results": [{"name": None, "type": "file"}, {"name": "a/b"}]}
            )
        )
        entries = ResultAssertions.assert_success(api.list_stage_files(DIRECTOR))
        assert entries == [StageFile(name="", type="file"), StageFile(name="a/b", type="")]
