"""
HTTP and WebSocket tests for the candidate test-session endpoints.
"""
import pytest
from starlette.websockets import WebSocketDisconnect

from aguka.core.security import create_access_token
from aguka.models.test import SessionStatus

from conftest import auth_headers, START_PAYLOAD

BASE = "/api/v1/candidate/test-sessions"


def _start(client, user, **overrides):
    payload = {**START_PAYLOAD, **overrides}
    return client.post(BASE, json=payload, headers=auth_headers(user))


class TestStartEndpoint:
    def test_start_returns_session_and_questions_without_answer_key(self, client, candidate, questions):
        response = _start(client, candidate)

        assert response.status_code == 201
        body = response.json()
        assert body["session"]["status"] == SessionStatus.IN_PROGRESS
        assert body["session"]["location_data"] == START_PAYLOAD["location"]
        assert len(body["questions"]) == 30
        assert all("correct_answer" not in q for q in body["questions"])

    def test_denied_camera_redirects_to_prep(self, client, candidate, questions):
        response = _start(client, candidate, permissions={"camera": False, "microphone": True, "location": True})

        assert response.status_code == 400
        assert response.json()["redirect_to"] == "/test-prep"
        assert client.get(BASE, headers=auth_headers(candidate)).json() == []

    def test_missing_location_redirects_to_prep(self, client, candidate, questions):
        response = _start(client, candidate, location=None)

        assert response.status_code == 400
        assert "location" in response.json()["detail"]

    def test_second_start_conflicts(self, client, candidate, questions):
        assert _start(client, candidate).status_code == 201
        response = _start(client, candidate, is_practice=True)
        assert response.status_code == 409
        assert response.json()["redirect_to"] == "/test-prep"

    def test_cooldown_sends_candidate_back_to_prep(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]
        client.post(f"{BASE}/{session_id}/submit", headers=auth_headers(candidate))

        response = _start(client, candidate)

        assert response.status_code == 409
        assert response.json()["detail"].startswith("The next official test is available on")
        assert response.json()["redirect_to"] == "/test-prep"

    def test_employer_cannot_start_a_test(self, client, employer, questions):
        response = _start(client, employer)
        assert response.status_code == 403

    def test_unauthenticated_request_is_rejected(self, client):
        assert client.get(BASE).status_code == 401

    def test_prep_info_reports_cooldown(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]
        client.post(f"{BASE}/{session_id}/submit", headers=auth_headers(candidate))

        prep = client.get("/api/v1/candidate/test-prep", headers=auth_headers(candidate)).json()

        assert prep["official_question_count"] == 30
        assert prep["practice_question_count"] == 10
        assert prep["last_test_date"] is not None
        assert prep["next_available_date"] > prep["last_test_date"]


class TestAttemptEndpoints:
    def test_answer_fullscreen_and_submit_flow(self, client, candidate, questions):
        started = _start(client, candidate).json()
        session_id = started["session"]["id"]
        question_id = started["questions"][0]["id"]
        headers = auth_headers(candidate)

        saved = client.put(f"{BASE}/{session_id}/answers/{question_id}", json={"value": "C"}, headers=headers)
        assert saved.status_code == 200
        assert saved.json()["answer"] == "C"

        chunk = client.post(
            f"{BASE}/{session_id}/recording/chunks",
            data={"chunk_index": "0"},
            files={"chunk": ("chunk.webm", b"\x1aE\xdf\xa3", "video/webm")},
            headers=headers,
        )
        assert chunk.json() == {"session_id": session_id, "chunk_index": 0, "size": 4}

        restored = client.post(f"{BASE}/{session_id}/fullscreen", json={"is_fullscreen": True}, headers=headers)
        assert restored.json() == {"submitted": False, "submission": None}

        exited = client.post(f"{BASE}/{session_id}/fullscreen", json={"is_fullscreen": False}, headers=headers)
        body = exited.json()
        assert body["submitted"] is True
        assert body["submission"]["synced"] is True
        assert body["submission"]["session"]["status"] == SessionStatus.COMPLETED
        assert body["submission"]["session"]["submit_reason"] == "fullscreen_exit"
        assert body["submission"]["session"]["video_url"] == f"test-recordings/{session_id}.webm"

        late = client.put(f"{BASE}/{session_id}/answers/{question_id}", json={"value": "A"}, headers=headers)
        assert late.status_code == 409

    def test_invalid_option_is_rejected(self, client, candidate, questions):
        started = _start(client, candidate).json()
        session_id = started["session"]["id"]
        question_id = started["questions"][0]["id"]

        response = client.put(
            f"{BASE}/{session_id}/answers/{question_id}", json={"value": "nope"}, headers=auth_headers(candidate)
        )
        assert response.status_code == 400

    def test_other_candidate_cannot_touch_session(self, client, candidate, other_candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]

        response = client.post(f"{BASE}/{session_id}/submit", headers=auth_headers(other_candidate))
        assert response.status_code == 403

    def test_submit_with_explicit_reason(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]

        response = client.post(f"{BASE}/{session_id}/submit", json={"reason": "timeout"},
                               headers=auth_headers(candidate))

        assert response.status_code == 200
        assert response.json()["session"]["submit_reason"] == "timeout"

    def test_teardown_releases_recording_once(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]
        headers = auth_headers(candidate)

        first = client.delete(f"{BASE}/{session_id}/recording", headers=headers)
        second = client.delete(f"{BASE}/{session_id}/recording", headers=headers)

        assert first.json() == {"session_id": session_id, "released": True}
        assert second.json()["released"] is False
        chunk = client.post(
            f"{BASE}/{session_id}/recording/chunks",
            data={"chunk_index": "1"},
            files={"chunk": ("chunk.webm", b"late", "video/webm")},
            headers=headers,
        )
        assert chunk.status_code == 409

    def test_questions_endpoint_returns_pinned_batch(self, client, candidate, questions):
        started = _start(client, candidate, is_practice=True).json()
        session_id = started["session"]["id"]

        response = client.get(f"{BASE}/{session_id}/questions", headers=auth_headers(candidate))

        assert [q["id"] for q in response.json()] == [q["id"] for q in started["questions"]]

    def test_client_violation_is_logged(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]
        headers = auth_headers(candidate)

        logged = client.post("/api/v1/proctoring/log-violation", json={
            "session_id": session_id,
            "violation_type": "tab_switch",
            "severity": "low",
        }, headers=headers)
        assert logged.status_code == 200

        violations = client.get(f"/api/v1/proctoring/sessions/{session_id}/violations", headers=headers).json()
        assert [v["violation_type"] for v in violations] == ["tab_switch"]

        client.post(f"{BASE}/{session_id}/submit", headers=headers)
        closed = client.post("/api/v1/proctoring/log-violation", json={
            "session_id": session_id,
            "violation_type": "tab_switch",
        }, headers=headers)
        assert closed.status_code == 409


class TestSessionSocket:
    def _socket_url(self, session_id, user):
        token = create_access_token({"sub": user.email, "role": user.role})
        return f"{BASE}/{session_id}/ws?token={token}"

    def test_answer_and_submit_over_socket(self, client, candidate, questions):
        started = _start(client, candidate).json()
        session_id = started["session"]["id"]
        question_id = started["questions"][0]["id"]

        with client.websocket_connect(self._socket_url(session_id, candidate)) as ws:
            ws.send_json({"type": "answer", "question_id": question_id, "value": "A"})
            assert ws.receive_json() == {"type": "answer_saved", "question_id": question_id}

            ws.send_json({"type": "fullscreen", "is_fullscreen": True})
            assert ws.receive_json() == {"type": "fullscreen_ack", "submitted": False}

            ws.send_json({"type": "bogus"})
            assert ws.receive_json()["type"] == "error"

            ws.send_json({"type": "submit"})
            submitted = ws.receive_json()
            assert submitted["type"] == "submitted"
            assert submitted["submission"]["session"]["status"] == SessionStatus.COMPLETED

            ws.send_json({"type": "answer", "question_id": question_id, "value": "B"})
            assert ws.receive_json()["type"] == "error"

    def test_malformed_frames_keep_the_attempt_running(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]
        headers = auth_headers(candidate)

        with client.websocket_connect(self._socket_url(session_id, candidate)) as ws:
            ws.send_json({"type": "answer", "question_id": None, "value": "A"})
            assert ws.receive_json()["type"] == "error"

            ws.send_json(["answer", 1])
            assert ws.receive_json() == {"type": "error", "detail": "Events must be JSON objects"}

            ws.send_text("not json")
            assert ws.receive_json()["type"] == "error"

            ws.send_json({"type": "fullscreen"})
            assert ws.receive_json()["type"] == "error"

            chunk = client.post(
                f"{BASE}/{session_id}/recording/chunks",
                data={"chunk_index": "0"},
                files={"chunk": ("chunk.webm", b"live", "video/webm")},
                headers=headers,
            )
            assert chunk.status_code == 200

            ws.send_json({"type": "fullscreen", "is_fullscreen": True})
            assert ws.receive_json() == {"type": "fullscreen_ack", "submitted": False}

        session = client.get(f"{BASE}/{session_id}", headers=headers).json()
        assert session["status"] == SessionStatus.IN_PROGRESS

    def test_disconnect_releases_recording(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]

        with client.websocket_connect(self._socket_url(session_id, candidate)) as ws:
            ws.send_json({"type": "fullscreen", "is_fullscreen": True})
            ws.receive_json()

        released = client.delete(f"{BASE}/{session_id}/recording", headers=auth_headers(candidate))
        assert released.json()["released"] is False

    def test_invalid_token_is_refused(self, client, candidate, questions):
        session_id = _start(client, candidate).json()["session"]["id"]

        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{BASE}/{session_id}/ws?token=garbage") as ws:
                ws.receive_json()
