import unittest
from unittest import mock

from requests import ConnectionError as RequestsConnectionError

from gradetrack.services.records_api import RecordsApiError, RecordsApiService
from gradetrack.state.session_state import SessionState


def _response(status_code=200, payload=None, json_error=False):
    res = mock.Mock()
    res.status_code = status_code
    if json_error:
        res.json.side_effect = ValueError("no json")
    else:
        res.json.return_value = payload
    return res


@mock.patch("gradetrack.services.records_api.requests.request")
class RecordsApiServiceTests(unittest.TestCase):
    def setUp(self):
        self.session = SessionState(uid="u1", token="jwt-token")
        self.api = RecordsApiService("http://localhost:8081/api/", session=self.session, timeout=5)

    def test_get_subjects_sends_params_and_token(self, request):
        request.return_value = _response(payload=[{"id": 1, "credits": 4}])

        subjects = self.api.get_subjects("2", 3, "5")

        self.assertEqual(subjects, [{"id": 1, "credits": 4}])
        method, url = request.call_args.args
        self.assertEqual(method, "GET")
        self.assertEqual(url, "http://localhost:8081/api/student/subjects")
        kwargs = request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"regulationId": 2, "departmentId": 3, "semester": 5})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer jwt-token")
        self.assertEqual(kwargs["timeout"], 5)

    def test_calculate_gpa_payload(self, request):
        request.return_value = _response(payload={"gpa": 7.71, "totalCredits": 7, "totalPoints": 54})

        data = self.api.calculate_gpa(2, [{"subjectId": 1, "grade": "O", "extra": True}])

        self.assertEqual(data["totalPoints"], 54)
        self.assertEqual(request.call_args.args[0], "POST")
        self.assertEqual(
            request.call_args.kwargs["json"],
            {"semester": 2, "subjects": [{"subjectId": 1, "grade": "O"}]},
        )

    def test_history_non_list_is_empty(self, request):
        request.return_value = _response(payload={"items": []})
        self.assertEqual(self.api.get_history(), [])

    def test_no_token_header_without_session(self, request):
        request.return_value = _response(payload={})
        RecordsApiService("http://api").get_profile()
        self.assertNotIn("Authorization", request.call_args.kwargs["headers"])

    def test_backend_message_is_surfaced(self, request):
        request.return_value = _response(400, {"message": "Grade not allowed for subject"})
        with self.assertRaises(RecordsApiError) as ctx:
            self.api.get_history()
        self.assertEqual(str(ctx.exception), "Grade not allowed for subject")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_unauthorized_clears_session(self, request):
        request.return_value = _response(401, {"message": "expired"})
        with self.assertRaises(RecordsApiError) as ctx:
            self.api.get_profile()
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertFalse(self.session.is_authenticated)

    def test_transport_failure(self, request):
        request.side_effect = RequestsConnectionError("down")
        with self.assertRaises(RecordsApiError) as ctx:
            self.api.get_history()
        self.assertEqual(str(ctx.exception), "RECORDS_API_UNAVAILABLE")

    def test_non_json_body(self, request):
        request.return_value = _response(502, json_error=True)
        with self.assertRaises(RecordsApiError) as ctx:
            self.api.get_history()
        self.assertEqual(ctx.exception.status_code, 502)


class RecordsApiConfigTests(unittest.TestCase):
    def test_base_url_required(self):
        with self.assertRaises(RecordsApiError):
            RecordsApiService("")


if __name__ == "__main__":
    unittest.main()
