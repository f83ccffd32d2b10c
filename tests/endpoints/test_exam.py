from fastapi.testclient import TestClient

from tests.helpers.ielts import (
    add_section, api_call, create_exam, data_of, error_of, reading_exam, submit, writing_exam,
)


class TestExamEndpoints:
    def test_create_exam_smoke(self, client: TestClient, admin_headers):
        response = api_call(client, "POST", "/exams/", headers=admin_headers,
                            json={"exam_name": "  Cambridge 18 Test 1  ", "exam_type": "Listening"})
        assert response.status_code == 201
        exam = data_of(response)
        assert exam["exam_name"] == "Cambridge 18 Test 1"
        assert exam["exam_type"] == "Listening"

    def test_create_exam_validation(self, client: TestClient, admin_headers):
        api_call(client, "POST", "/exams/", headers=admin_headers, json={"exam_name": "   ", "exam_type": "Reading"},
                 expected_min=422, expected_max=423)
        api_call(client, "POST", "/exams/", headers=admin_headers, json={"exam_name": "Mock", "exam_type": "Grammar"},
                 expected_min=422, expected_max=423)

    def test_only_admins_manage_exams(self, client: TestClient, admin_headers, headers_for):
        exam = create_exam(client, admin_headers, "Reading")
        for role in ("user", "moderator"):
            headers = headers_for(role)
            api_call(client, "POST", "/exams/", headers=headers, json={"exam_name": "Mock", "exam_type": "Reading"},
                     expected_min=403, expected_max=404)
            api_call(client, "PUT", f"/exams/{exam['id']}", headers=headers, json={"exam_name": "Renamed"},
                     expected_min=403, expected_max=404)
            api_call(client, "DELETE", f"/exams/{exam['id']}", headers=headers, expected_min=403, expected_max=404)
            api_call(client, "POST", f"/exams/{exam['id']}/readings", headers=headers,
                     json={"reading_content": "Passage"}, expected_min=403, expected_max=404)

    def test_get_all_exams_filters_by_type(self, client: TestClient, admin_headers, user_headers):
        create_exam(client, admin_headers, "Reading")
        create_exam(client, admin_headers, "Writing")

        everything = data_of(api_call(client, "GET", "/exams/", headers=user_headers))
        assert len(everything) == 2

        writing_only = data_of(api_call(client, "GET", "/exams/?exam_type=Writing", headers=user_headers))
        assert [e["exam_type"] for e in writing_only] == ["Writing"]

    def test_get_exam_hides_answer_keys(self, client: TestClient, admin_headers, user_headers):
        exam = reading_exam(client, admin_headers, ['["A","B"]'])

        detail = data_of(api_call(client, "GET", f"/exams/{exam['id']}", headers=user_headers))
        assert detail["readings"][0]["reading_content"] == "Passage 1"
        assert "correct_answer" not in detail["readings"][0]
        assert detail["writings"] == []

    def test_get_missing_exam(self, client: TestClient, user_headers):
        response = api_call(client, "GET", "/exams/424242", headers=user_headers, expected_min=404, expected_max=405)
        assert error_of(response)["code"] == "NOT_FOUND"

    def test_update_exam_smoke(self, client: TestClient, admin_headers):
        exam = create_exam(client, admin_headers, "Writing")
        updated = data_of(api_call(client, "PUT", f"/exams/{exam['id']}", headers=admin_headers,
                                   json={"exam_name": "Academic Writing Mock", "exam_type": "Speaking"}))
        assert updated["exam_name"] == "Academic Writing Mock"
        assert updated["exam_type"] == "Speaking"

    def test_exam_type_is_fixed_once_it_has_sections(self, client: TestClient, admin_headers):
        exam = writing_exam(client, admin_headers)
        api_call(client, "PUT", f"/exams/{exam['id']}", headers=admin_headers, json={"exam_type": "Reading"},
                 expected_min=409, expected_max=410)

    def test_delete_exam_smoke(self, client: TestClient, admin_headers, user_headers):
        exam = reading_exam(client, admin_headers, ["A"])
        api_call(client, "DELETE", f"/exams/{exam['id']}", headers=admin_headers)
        api_call(client, "GET", f"/exams/{exam['id']}", headers=user_headers, expected_min=404, expected_max=405)

    def test_exam_with_attempts_cannot_be_deleted(self, client: TestClient, admin_headers, user_headers):
        exam = reading_exam(client, admin_headers, ["A"])
        submit(client, user_headers, exam["id"], [{"SkillId": exam["sections"][0]["id"], "Answers": ["A"]}])
        api_call(client, "DELETE", f"/exams/{exam['id']}", headers=admin_headers, expected_min=409, expected_max=410)

    def test_start_attempt_on_missing_exam(self, client: TestClient, user_headers):
        api_call(client, "POST", "/exams/999/attempts", headers=user_headers, expected_min=404, expected_max=405)


class TestSectionEndpoints:
    def test_answer_keys_visible_to_admins_only(self, client: TestClient, admin_headers, headers_for):
        exam = reading_exam(client, admin_headers, ["TRUE;FALSE;NOT GIVEN"])
        section_id = exam["sections"][0]["id"]
        assert exam["sections"][0]["correct_answer"] == "TRUE;FALSE;NOT GIVEN"

        admin_view = data_of(api_call(client, "GET", f"/exams/{exam['id']}/readings/{section_id}", headers=admin_headers))
        assert admin_view["correct_answer"] == "TRUE;FALSE;NOT GIVEN"

        for role in ("user", "moderator"):
            listed = data_of(api_call(client, "GET", f"/exams/{exam['id']}/readings", headers=headers_for(role)))
            assert listed[0]["id"] == section_id
            assert "correct_answer" not in listed[0]
            single = data_of(api_call(client, "GET", f"/exams/{exam['id']}/readings/{section_id}", headers=headers_for(role)))
            assert "correct_answer" not in single

    def test_listening_sections(self, client: TestClient, admin_headers):
        exam = create_exam(client, admin_headers, "Listening")
        section = add_section(client, admin_headers, exam, listening_content="https://cdn.example.com/part1.mp3",
                              listening_question="Questions 1-10", correct_answer='["library","9:30"]')
        assert section["listening_type"] == "Markdown"

        updated = data_of(api_call(client, "PUT", f"/exams/{exam['id']}/listenings/{section['id']}", headers=admin_headers,
                                   json={"correct_answer": '["library","9.30"]'}))
        assert updated["correct_answer"] == '["library","9.30"]'
        assert updated["listening_question"] == "Questions 1-10"

    def test_sections_must_match_the_exam_type(self, client: TestClient, admin_headers):
        exam = create_exam(client, admin_headers, "Reading")
        response = api_call(client, "POST", f"/exams/{exam['id']}/writings", headers=admin_headers,
                            json={"writing_question": "Describe the chart."}, expected_min=400, expected_max=401)
        assert "Reading exam" in error_of(response)["message"]

    def test_sections_are_ordered(self, client: TestClient, admin_headers, user_headers):
        exam = create_exam(client, admin_headers, "Speaking")
        add_section(client, admin_headers, exam, speaking_question="Part 3 question", display_order=3)
        add_section(client, admin_headers, exam, speaking_question="Part 1 question", display_order=1)

        listed = data_of(api_call(client, "GET", f"/exams/{exam['id']}/speakings", headers=user_headers))
        assert [s["speaking_question"] for s in listed] == ["Part 1 question", "Part 3 question"]

    def test_delete_section(self, client: TestClient, admin_headers):
        exam = writing_exam(client, admin_headers, tasks=2)
        first = exam["sections"][0]

        api_call(client, "DELETE", f"/exams/{exam['id']}/writings/{first['id']}", headers=admin_headers)
        api_call(client, "GET", f"/exams/{exam['id']}/writings/{first['id']}", headers=admin_headers,
                 expected_min=404, expected_max=405)
        remaining = data_of(api_call(client, "GET", f"/exams/{exam['id']}/writings", headers=admin_headers))
        assert [s["id"] for s in remaining] == [exam["sections"][1]["id"]]

    def test_section_of_another_exam_is_not_found(self, client: TestClient, admin_headers):
        exam = reading_exam(client, admin_headers, ["A"])
        other = create_exam(client, admin_headers, "Reading")
        api_call(client, "GET", f"/exams/{other['id']}/readings/{exam['sections'][0]['id']}", headers=admin_headers,
                 expected_min=404, expected_max=405)
