"""Tests for the athlete mention REST API."""

from rcmentions.errors import UpstreamFetchError


class TestBatchEndpoint:
    """Tests for GET/POST /api/v1/athlete-mentions/batch."""

    def test_batch_defaults(self, client) -> None:
        response = client.get("/api/v1/athlete-mentions/batch")

        assert response.status_code == 200
        data = response.json()
        assert data["contentType"] == "podcast"
        assert data["processed"] == 2
        assert data["errors"] == 0
        assert data["errorDetails"] == []
        assert data["athleteMatches"] == {"total": 2, "title": 1, "content": 1}
        assert data["successRate"] == "100.0%"

    def test_batch_post_with_params(self, client) -> None:
        response = client.post(
            "/api/v1/athlete-mentions/batch",
            params={"contentType": "video", "maxAgeHours": 12, "batchSize": 5},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["contentType"] == "video"
        assert data["processed"] == 1
        assert data["athleteMatches"]["content"] == 1

    def test_batch_size_limits_selection(self, client) -> None:
        data = client.get("/api/v1/athlete-mentions/batch", params={"batchSize": 1}).json()

        assert data["processed"] == 1
        assert data["remaining"] == 2

    def test_invalid_params_rejected(self, client) -> None:
        assert client.get("/api/v1/athlete-mentions/batch", params={"batchSize": 0}).status_code == 422
        assert client.get("/api/v1/athlete-mentions/batch", params={"contentType": "blog"}).status_code == 422

    def test_upstream_failure_returns_503(self, client, storage, monkeypatch) -> None:
        async def down(*args, **kwargs):
            raise UpstreamFetchError("Database unavailable")

        monkeypatch.setattr(storage, "select_unprocessed", down)

        response = client.get("/api/v1/athlete-mentions/batch")

        assert response.status_code == 503


class TestItemEndpoint:
    def test_process_item(self, client) -> None:
        response = client.post("/api/v1/athlete-mentions/podcast/ep-1")

        assert response.status_code == 200
        assert response.json() == {
            "contentId": "ep-1",
            "contentType": "podcast",
            "titleMatches": 1,
            "contentMatches": 1,
            "mentionsWritten": 2,
            "insertErrors": 0,
        }

    def test_process_missing_item(self, client) -> None:
        response = client.post("/api/v1/athlete-mentions/video/nope")

        assert response.status_code == 404
        assert response.json()["detail"] == "Content not found: nope (type: video)"


class TestStatsEndpoint:
    def test_stats_after_processing(self, client) -> None:
        client.post("/api/v1/athlete-mentions/podcast/ep-1")

        response = client.get("/api/v1/athlete-mentions/stats", params={"contentType": "podcast"})

        assert response.status_code == 200
        assert response.json() == {
            "contentType": "podcast",
            "total": 4,
            "processed": 2,
            "unprocessed": 2,
            "totalMentions": 2,
        }


class TestHealth:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "ok"}
