"""
End-to-end tests for the upload, detection, configuration and parse endpoints.
"""

import io
import json

import pandas as pd
from fastapi.testclient import TestClient

from transgrid.main import app

client = TestClient(app)

SCENARIO_CSV = b"Source,Target\nHello,Hola\n,Bonjour\n"


def _upload(project_id, content, file_name, content_type):
    response = client.post(
        f"/projects/{project_id}/files",
        files={"file": (file_name, content, content_type)},
    )
    assert response.status_code == 200, response.text
    return response.json()["file"]["id"]


def _save_config(project_id, file_id, mappings, **fields):
    body = {"mappings": mappings, **fields}
    return client.post(f"/projects/{project_id}/files/{file_id}/column-config", json=body)


SCENARIO_MAPPINGS = [
    {"columnIndex": 0, "columnName": "Source", "columnType": "source", "languageCode": "en", "isRequired": True},
    {"columnIndex": 1, "columnName": "Target", "columnType": "target", "languageCode": "es"},
]


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_upload_requires_known_project():
    response = client.post(
        "/projects/missing/files",
        files={"file": ("strings.csv", SCENARIO_CSV, "text/csv")},
    )
    assert response.status_code == 404


class TestDetectColumns:
    def test_detect_csv(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        response = client.get(f"/files/{file_id}/columns")

        assert response.status_code == 200
        data = response.json()
        assert data["totalRows"] == 3
        assert data["previewData"] == [["Source", "Target"], ["Hello", "Hola"], ["", "Bonjour"]]
        assert data["sheetName"] is None

        source, target = data["columns"]
        assert source["name"] == "Source"
        assert source["suggestedType"] == "source"
        assert source["confidence"] == 0.8
        assert target["suggestedType"] == "target"
        assert source["suggestions"][-1]["type"] == "skip"

        assert data["analysis"][0]["columnIndex"] == 0
        assert data["analysis"][0]["analysis"]["dataType"] == "text"
        assert data["analysis"][0]["suggestions"][0]["type"] == "source"

    def test_preview_limited_to_five_rows(self, project):
        content = "Source\n" + "\n".join(f"line {n}" for n in range(20))
        file_id = _upload(project["id"], content.encode(), "lines.csv", "text/csv")
        data = client.get(f"/files/{file_id}/columns", params={"maxSampleRows": 3}).json()

        assert len(data["previewData"]) == 5
        assert data["totalRows"] == 21
        assert data["columns"][0]["totalValues"] == 4

    def test_detect_workbook_sheet(self, project):
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame({"English": ["Hello"], "French": ["Bonjour"]}).to_excel(writer, sheet_name="UI", index=False)
            pd.DataFrame({"Key": ["k"]}).to_excel(writer, sheet_name="Keys", index=False)
        file_id = _upload(
            project["id"], buffer.getvalue(), "book.xlsx",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

        data = client.get(f"/files/{file_id}/columns").json()
        assert data["sheetName"] == "UI"
        assert data["sheetNames"] == ["UI", "Keys"]
        assert [c["languageCode"] for c in data["columns"]] == ["en", "fr"]

        response = client.get(f"/files/{file_id}/columns", params={"sheetName": "Missing"})
        assert response.status_code == 404

    def test_unknown_file(self):
        response = client.get("/files/does-not-exist/columns")
        assert response.status_code == 404

    def test_unsupported_format(self, project):
        file_id = _upload(project["id"], b"\x89PNG\r\n", "logo.png", "image/png")
        response = client.get(f"/files/{file_id}/columns")

        assert response.status_code == 415
        assert "image/png" in response.json()["detail"]

    def test_corrupt_input(self, project):
        file_id = _upload(project["id"], b'{"greeting": ', "messages.json", "application/json")
        response = client.get(f"/files/{file_id}/columns")

        assert response.status_code == 422
        assert response.json()["detail"] == "Failed to parse file"


class TestConfigurationEndpoints:
    def test_save_get_and_delete(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")

        assert client.get(f"/projects/{project['id']}/files/{file_id}/column-config").json() is None

        response = _save_config(project["id"], file_id, SCENARIO_MAPPINGS, name="Strings")
        assert response.status_code == 200, response.text
        saved = response.json()
        assert saved["id"]
        assert saved["fileId"] == file_id
        assert [m["columnType"] for m in saved["mappings"]] == ["source", "target"]

        fetched = client.get(f"/projects/{project['id']}/files/{file_id}/column-config").json()
        assert fetched["id"] == saved["id"]
        assert fetched["name"] == "Strings"

        response = client.delete(f"/projects/{project['id']}/column-configs/{saved['id']}")
        assert response.status_code == 200
        assert response.json()["success"] is True

        response = client.delete(f"/projects/{project['id']}/column-configs/{saved['id']}")
        assert response.status_code == 404

    def test_configuration_without_source_is_rejected(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        response = _save_config(project["id"], file_id, SCENARIO_MAPPINGS[1:])
        assert response.status_code == 400

    def test_unknown_role_is_a_schema_error(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        mappings = [{"columnIndex": 0, "columnName": "Source", "columnType": "subtitle"}]
        response = _save_config(project["id"], file_id, mappings)
        assert response.status_code == 422

    def test_save_for_unknown_file(self, project):
        response = _save_config(project["id"], "missing", SCENARIO_MAPPINGS)
        assert response.status_code == 404


class TestParseWithConfiguration:
    def test_parse_twice_skips_existing_segments(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        configuration_id = _save_config(project["id"], file_id, SCENARIO_MAPPINGS).json()["id"]
        url = f"/projects/{project['id']}/files/{file_id}/parse-with-config"

        first = client.post(url, json={"configurationId": configuration_id})
        assert first.status_code == 200, first.text
        data = first.json()
        assert (data["parsed"], data["skipped"]) == (1, 0)
        segment = data["segments"][0]
        assert segment["segmentKey"] == "row_1_source_0"
        assert segment["sourceText"] == "Hello"
        assert segment["targetText"] == "Hola"
        assert segment["status"] == "translated"

        second = client.post(url, json={"configurationId": configuration_id}).json()
        assert (second["parsed"], second["skipped"]) == (0, 1)

        listing = client.get(f"/projects/{project['id']}/segments").json()
        assert listing["total"] == 1
        assert listing["segments"][0]["fileId"] == file_id

    def test_unknown_configuration(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        response = client.post(
            f"/projects/{project['id']}/files/{file_id}/parse-with-config",
            json={"configurationId": "missing"},
        )
        assert response.status_code == 404

    def test_configuration_of_another_file(self, project):
        first_file = _upload(project["id"], SCENARIO_CSV, "a.csv", "text/csv")
        second_file = _upload(project["id"], SCENARIO_CSV, "b.csv", "text/csv")
        configuration_id = _save_config(project["id"], first_file, SCENARIO_MAPPINGS).json()["id"]

        response = client.post(
            f"/projects/{project['id']}/files/{second_file}/parse-with-config",
            json={"configurationId": configuration_id},
        )
        assert response.status_code == 404

    def test_json_file_with_key_column(self, project):
        payload = {"menu": {"file": "File", "edit": "Edit"}}
        file_id = _upload(project["id"], json.dumps(payload).encode(), "en.json", "application/json")
        mappings = [
            {"columnIndex": 0, "columnName": "Key", "columnType": "key"},
            {"columnIndex": 1, "columnName": "Source Text", "columnType": "source"},
        ]
        configuration_id = _save_config(project["id"], file_id, mappings).json()["id"]

        data = client.post(
            f"/projects/{project['id']}/files/{file_id}/parse-with-config",
            json={"configurationId": configuration_id},
        ).json()
        assert [s["segmentKey"] for s in data["segments"]] == ["menu.file", "menu.edit"]
        assert all(s["status"] == "new" for s in data["segments"])


class TestPresets:
    def test_list_presets(self):
        response = client.get("/presets")
        assert response.status_code == 200
        presets = response.json()
        assert [p["id"] for p in presets] == ["common", "translation_memory", "glossary"]
        assert presets[0]["name"] == "Common Translation"
        assert presets[0]["mappings"][0]["columnType"] == "source"

    def test_apply_preset_to_file(self, project):
        file_id = _upload(project["id"], b"a,b,c\nHello,Hola,Greeting\n", "strings.csv", "text/csv")
        response = client.post(f"/files/{file_id}/apply-preset", json={"presetId": "common"})

        assert response.status_code == 200
        draft = response.json()
        assert draft["id"] is None
        assert [m["columnIndex"] for m in draft["mappings"]] == [0, 1, 2]
        assert [m["columnType"] for m in draft["mappings"]] == ["source", "target", "context"]

    def test_apply_unknown_preset(self, project):
        file_id = _upload(project["id"], SCENARIO_CSV, "strings.csv", "text/csv")
        response = client.post(f"/files/{file_id}/apply-preset", json={"presetId": "unknown"})
        assert response.status_code == 404
