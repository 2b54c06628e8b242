from __future__ import annotations

from fastapi.testclient import TestClient

from classifier_server.dispatcher import ServiceDispatcher


def _create(http: TestClient, identifier: str, class_type: str = "stub") -> None:
    response = http.post(
        "/create_classifier", json={"identifier": identifier, "class_type": class_type}
    )
    assert response.status_code == 200, response.json()


def test_scenario_over_http(http: TestClient) -> None:
    _create(http, "A")

    added = http.post(
        "/add_class_data",
        json={"identifier": "A", "data": [{"target_class": "1", "point": [0.0, 0.0]}]},
    )
    assert added.status_code == 200
    assert added.json()["added"] == 1

    assert http.post("/train_classifier", json={"identifier": "A"}).status_code == 200

    classified = http.post(
        "/classify_data", json={"identifier": "A", "data": [{"point": [0.0, 0.0]}]}
    )
    assert classified.status_code == 200
    assert classified.json() == {"success": True, "error": None, "classifications": ["1"]}

    missing = http.post(
        "/classify_data", json={"identifier": "B", "data": [{"point": [0.0, 0.0]}]}
    )
    assert missing.status_code == 404
    body = missing.json()
    assert body["success"] is False
    assert body["classifications"] == []
    assert body["error"]["code"] == "UNKNOWN_IDENTIFIER"
    assert body["error"]["details"] == {"identifier": "B"}


def test_unknown_class_type_is_bad_request(http: TestClient) -> None:
    response = http.post(
        "/create_classifier", json={"identifier": "A", "class_type": "does_not_exist"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PLUGIN_RESOLUTION_FAILED"
    assert http.get("/classifiers").json()["classifiers"] == []


def test_malformed_body_is_validation_error(http: TestClient) -> None:
    response = http.post("/add_class_data", json={"data": "nope"})

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "identifier" in body["error"]["message"]


def test_non_numeric_point_is_validation_error(http: TestClient) -> None:
    _create(http, "A")

    response = http.post(
        "/add_class_data",
        json={"identifier": "A", "data": [{"target_class": "x", "point": ["high"]}]},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_training_failure_maps_to_422(http: TestClient) -> None:
    _create(http, "empty")

    response = http.post("/train_classifier", json={"identifier": "empty"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "TRAINING_FAILED"


def test_classification_failure_maps_to_422(http: TestClient) -> None:
    _create(http, "bad", "broken")

    response = http.post(
        "/classify_data", json={"identifier": "bad", "data": [{"point": [1.0]}]}
    )

    assert response.status_code == 422
    body = response.json()
    assert body["classifications"] == []
    assert body["error"]["details"]["index"] == 0


def test_persistence_failure_maps_to_500(http: TestClient) -> None:
    _create(http, "A", "failing_save")

    response = http.post("/save_classifier", json={"identifier": "A", "filename": "a.json"})

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "PERSISTENCE_FAILED"


def test_busy_classifier_maps_to_conflict(http: TestClient, dispatcher: ServiceDispatcher) -> None:
    _create(http, "A")

    with dispatcher.registry.acquire("A"):
        response = http.post("/train_classifier", json={"identifier": "A"})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CLASSIFIER_BUSY"


def test_save_and_load_through_http(http: TestClient, models_dir) -> None:
    _create(http, "A", "nearest_neighbor")
    http.post(
        "/add_class_data",
        json={
            "identifier": "A",
            "data": [
                {"target_class": "left", "point": [0.0, 0.0]},
                {"target_class": "right", "point": [10.0, 0.0]},
            ],
        },
    )
    assert http.post("/train_classifier", json={"identifier": "A"}).status_code == 200

    saved = http.post("/save_classifier", json={"identifier": "A", "filename": "a.pkl"})
    assert saved.status_code == 200
    assert saved.json()["path"] == str(models_dir / "a.pkl")

    loaded = http.post(
        "/load_classifier",
        json={"identifier": "B", "class_type": "nearest_neighbor", "filename": "a.pkl"},
    )
    assert loaded.status_code == 200

    classified = http.post(
        "/classify_data",
        json={"identifier": "B", "data": [{"point": [9.0, 1.0]}, {"point": [1.0, -1.0]}]},
    )
    assert classified.json()["classifications"] == ["right", "left"]


def test_delete_then_unknown(http: TestClient) -> None:
    _create(http, "A")

    assert http.post("/delete_classifier", json={"identifier": "A"}).status_code == 200
    assert http.post("/delete_classifier", json={"identifier": "A"}).status_code == 404
    assert http.post("/clear_classifier", json={"identifier": "A"}).status_code == 404


def test_listing_endpoints(http: TestClient) -> None:
    _create(http, "A")
    http.post(
        "/add_class_data",
        json={"identifier": "A", "data": [{"target_class": "x", "point": [1.0]}]},
    )

    listing = http.get("/classifiers").json()["classifiers"]
    assert [(item["identifier"], item["class_type"], item["state"]) for item in listing] == [
        ("A", "stub", "accumulating")
    ]

    class_types = http.get("/plugins").json()["class_types"]
    assert "zero" in class_types
    assert "stub" in class_types

    health = http.get("/health").json()
    assert health["status"] == "ok"
    assert health["classifiers"] == 1


def test_point_rejection_maps_to_422(http: TestClient) -> None:
    _create(http, "P", "picky")

    response = http.post(
        "/add_class_data",
        json={
            "identifier": "P",
            "data": [
                {"target_class": "ok", "point": [1.0]},
                {"target_class": "bad", "point": [-1.0]},
            ],
        },
    )

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "POINT_REJECTED"
    assert error["details"] == {"index": 1, "added": 1}
