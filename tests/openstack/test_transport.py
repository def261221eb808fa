import requests

from fiwarelab.observers.dispatcher import EventBus
from fiwarelab.openstack.errors import TransportError
from fiwarelab.openstack.transport import Transport

URL = "http://api.example/v2/resource"


class Recorder:
    def __init__(self):
        self.ok = []
        self.errors = []

    def on_success(self, result, headers, subject_token):
        self.ok.append((result, headers, subject_token))

    def on_error(self, err):
        self.errors.append(err)


def test_default_headers_without_body():
    h = Transport.build_headers(None, None, has_body=False)
    assert h == {"Accept": "application/json"}


def test_default_headers_with_body_and_token():
    h = Transport.build_headers("tok", None, has_body=True)
    assert h["X-Auth-Token"] == "tok"
    assert h["Content-Type"] == "application/json"
    assert h["Accept"] == "application/json"


def test_caller_headers_are_kept_verbatim():
    h = Transport.build_headers(None, {"Content-Type": "text/xml", "Accept": "text/xml", "X-Foo": "1"}, True)
    assert h == {"Content-Type": "text/xml", "Accept": "text/xml", "X-Foo": "1"}


def test_json_success_fires_on_success_once(fake_http):
    fake_http.route("GET", URL, 200, {"a": 1}, headers={"X-Subject-Token": "subj"})
    rec = Recorder()
    out = Transport(http=fake_http).get(URL, "tok", rec.on_success, rec.on_error)

    assert out.ok and out.result == {"a": 1}
    assert rec.errors == []
    assert len(rec.ok) == 1
    result, headers, subject = rec.ok[0]
    assert result == {"a": 1}
    assert subject == "subj"
    assert fake_http.calls[0].headers["X-Auth-Token"] == "tok"


def test_body_is_sent_as_json(fake_http):
    fake_http.route("POST", URL, 201, {"ok": True})
    Transport(http=fake_http).post(URL, {"server": {"name": "vm"}})
    call = fake_http.calls[0]
    assert call.method == "POST"
    assert call.body == {"server": {"name": "vm"}}
    assert call.headers["Content-Type"] == "application/json"


def test_plain_text_passes_through(fake_http):
    fake_http.route("GET", URL, 200, text="{not json", headers={"content-type": "text/plain; charset=utf-8"})
    rec = Recorder()
    Transport(http=fake_http).get(URL, None, rec.on_success, rec.on_error)
    assert rec.ok[0][0] == "{not json"
    assert rec.errors == []


def test_empty_body_gives_none(fake_http):
    fake_http.route("DELETE", URL, 204, text="")
    rec = Recorder()
    out = Transport(http=fake_http).delete(URL, "tok", rec.on_success, rec.on_error)
    assert out.ok
    assert rec.ok[0][0] is None


def test_status_207_is_success(fake_http):
    fake_http.route("GET", URL, 207, {"multi": True})
    assert Transport(http=fake_http).get(URL).ok


def test_malformed_json_is_a_transport_error(fake_http):
    fake_http.route("GET", URL, 200, text="{oops", headers={"content-type": "application/json"})
    rec = Recorder()
    out = Transport(http=fake_http).get(URL, None, rec.on_success, rec.on_error)

    assert not out.ok
    assert rec.ok == []
    assert len(rec.errors) == 1
    assert isinstance(rec.errors[0], TransportError)
    assert rec.errors[0].body == "{oops"


def test_error_status_reports_message_and_body(fake_http):
    fake_http.route("GET", URL, 404, text="no such thing")
    rec = Recorder()
    Transport(http=fake_http).get(URL, None, rec.on_success, rec.on_error)

    assert rec.ok == []
    assert len(rec.errors) == 1
    err = rec.errors[0]
    assert err.message == "404 Error"
    assert err.body == "no such thing"
    assert err.status == 404


def test_401_runs_hook_once_and_still_reports_error(fake_http):
    fake_http.route("GET", URL, 401, text="denied")
    hooked = []
    rec = Recorder()
    t = Transport(http=fake_http, unauthorized_hook=hooked.append)
    t.get(URL, "tok", rec.on_success, rec.on_error)

    assert len(hooked) == 1
    assert len(rec.errors) == 1
    assert rec.errors[0].message == "401 Error"


def test_401_with_skip_token_recheck_does_not_run_hook(fake_http):
    fake_http.route("GET", URL, 401, text="denied")
    hooked = []
    rec = Recorder()
    Transport(http=fake_http, unauthorized_hook=hooked.append).get(
        URL, "tok", rec.on_success, rec.on_error, skip_token_recheck=True
    )
    assert hooked == []
    assert len(rec.errors) == 1


def test_401_hook_failure_does_not_escape(fake_http):
    fake_http.route("GET", URL, 401, text="denied")

    def boom(_err):
        raise RuntimeError("keystone down")

    rec = Recorder()
    out = Transport(http=fake_http, unauthorized_hook=boom).get(URL, "tok", rec.on_success, rec.on_error)
    assert not out.ok
    assert len(rec.errors) == 1


def test_network_failure_becomes_error_callback(fake_http):
    fake_http.route("GET", URL, exc=requests.ConnectionError("connection refused"))
    rec = Recorder()
    out = Transport(http=fake_http).get(URL, None, rec.on_success, rec.on_error)

    assert not out.ok
    assert len(rec.errors) == 1
    assert rec.errors[0].message == "Error"
    assert "connection refused" in rec.errors[0].body
    assert rec.errors[0].status is None


def test_unserializable_body_becomes_error_callback(fake_http):
    rec = Recorder()
    out = Transport(http=fake_http).post(URL, {"when": object()}, None, rec.on_success, rec.on_error)
    assert not out.ok
    assert len(rec.errors) == 1
    assert fake_http.calls == []


def test_patch_defaults_to_json_patch_content_type(fake_http):
    fake_http.route("PATCH", URL, 200, {})
    Transport(http=fake_http).patch(URL, [{"op": "replace"}])
    assert fake_http.calls[0].headers["Content-Type"] == "application/openstack-images-v2.1-json-patch"


def test_method_is_upper_cased_and_tls_settings_forwarded(fake_http):
    fake_http.route("GET", URL, 200, {})
    Transport(http=fake_http, verify_tls=False, timeout=5).send("get", URL)
    call = fake_http.calls[0]
    assert call.method == "GET"
    assert call.verify is False
    assert call.timeout == 5


def test_failures_are_emitted_as_events(fake_http, capture):
    fake_http.route("GET", URL, 500, text="boom")
    Transport(http=fake_http, bus=EventBus([capture])).get(URL)
    assert capture.kinds() == ["RequestFailed"]
    ev = capture.events[0]
    assert ev.status == 500
    assert ev.url == URL


def test_lower_case_caller_headers_suppress_defaults():
    h = Transport.build_headers(None, {"content-type": "text/plain", "accept": "text/csv"}, True)
    assert h == {"content-type": "text/plain", "accept": "text/csv"}


def test_lower_case_content_type_survives_patch(fake_http):
    fake_http.route("PATCH", URL, 200, {})
    Transport(http=fake_http).patch(URL, [{"op": "add"}], headers={"content-type": "application/json-patch+json"})
    assert fake_http.calls[0].headers == {
        "content-type": "application/json-patch+json",
        "Accept": "application/json",
    }


def test_failure_events_carry_transport_run_id(fake_http, capture):
    fake_http.route("GET", URL, 404, text="missing")
    Transport(http=fake_http, bus=EventBus([capture]), run_id="run-7").get(URL)
    assert capture.events[0].run_id == "run-7"
