import pytest
import requests
from unittest.mock import MagicMock

from services.event_dispatch import EventDispatchService
from services.exceptions import TransportError
from services.unit_directory import UnitDirectoryService
from services.write_offs.model import Unit


@pytest.fixture(autouse=True)
def _no_dotenv(mocker, monkeypatch):
    mocker.patch("services.unit_directory.load_dotenv")
    mocker.patch("services.event_dispatch.load_dotenv")
    monkeypatch.delenv("UNIT_DIRECTORY_TOKEN", raising=False)
    monkeypatch.delenv("EVENT_SINK_TOKEN", raising=False)


def _response(json_data=None, error=None):
    resp = MagicMock()
    resp.json.return_value = json_data
    if error is not None:
        resp.raise_for_status.side_effect = error
    return resp


class TestUnitDirectoryService:

    def test_list_units(self):
        http = MagicMock()
        http.get.return_value = _response([{"id": 1, "name": "Kitchen 1"}, {"id": "b2", "name": "Kitchen 2"}])
        svc = UnitDirectoryService("https://units.example/api/units", token="secret", timeout=5, http_client=http)

        assert svc.list_units() == [Unit(1, "Kitchen 1"), Unit("b2", "Kitchen 2")]
        http.get.assert_called_once_with(
            "https://units.example/api/units",
            headers={"Accept": "application/json", "Authorization": "Bearer secret"},
            timeout=5,
        )

    def test_accepts_wrapped_list_and_skips_malformed_entries(self):
        http = MagicMock()
        http.get.return_value = _response({"units": [{"id": 1, "name": "K1"}, {"id": 2}, "junk"]})

        assert UnitDirectoryService("https://u", http_client=http).list_units() == [Unit(1, "K1")]

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("UNIT_DIRECTORY_TOKEN", "env-token")
        http = MagicMock()
        http.get.return_value = _response([])

        UnitDirectoryService("https://u", http_client=http).list_units()

        assert http.get.call_args.kwargs["headers"]["Authorization"] == "Bearer env-token"

    def test_http_error_becomes_transport_error(self):
        http = MagicMock()
        http.get.return_value = _response(error=requests.HTTPError("503 Server Error"))

        with pytest.raises(TransportError):
            UnitDirectoryService("https://u", http_client=http).list_units()

    def test_connection_error_becomes_transport_error(self):
        http = MagicMock()
        http.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError) as exc:
            UnitDirectoryService("https://u", http_client=http).list_units()
        assert "refused" in exc.value.message

    def test_bad_json_becomes_transport_error(self):
        http = MagicMock()
        http.get.return_value.json.side_effect = ValueError("Expecting value")

        with pytest.raises(TransportError):
            UnitDirectoryService("https://u", http_client=http).list_units()

    def test_unexpected_body_becomes_transport_error(self):
        http = MagicMock()
        http.get.return_value = _response("not a list")

        with pytest.raises(TransportError):
            UnitDirectoryService("https://u", http_client=http).list_units()

    def test_url_required(self):
        with pytest.raises(ValueError):
            UnitDirectoryService("")


class TestEventDispatchService:

    PAYLOAD = [{"unit_id": 12, "unit_name": "Kitchen 2", "events": ["EXPIRE_AT_5_MINUTES"]}]

    def test_dispatch_posts_payload(self):
        http = MagicMock()
        http.post.return_value = _response()
        svc = EventDispatchService("https://events.example/write-offs", http_client=http)

        svc.dispatch(self.PAYLOAD)

        http.post.assert_called_once_with(
            "https://events.example/write-offs",
            json=self.PAYLOAD,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=10,
        )

    def test_bearer_token(self):
        http = MagicMock()
        http.post.return_value = _response()

        EventDispatchService("https://e", token="t0k", http_client=http).dispatch(self.PAYLOAD)

        assert http.post.call_args.kwargs["headers"]["Authorization"] == "Bearer t0k"

    def test_http_error_is_logged_and_raised(self, caplog):
        http = MagicMock()
        http.post.return_value = _response(error=requests.HTTPError("502 Bad Gateway"))

        with pytest.raises(TransportError):
            EventDispatchService("https://e", http_client=http).dispatch(self.PAYLOAD)
        assert "Event dispatch failed" in caplog.text

    def test_timeout_is_transport_error(self):
        http = MagicMock()
        http.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportError):
            EventDispatchService("https://e", http_client=http).dispatch(self.PAYLOAD)
