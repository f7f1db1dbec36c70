"""
Unit tests for ArticleService: reads, engagement and admin operations.
"""

from datetime import datetime, timezone

import pytest

from newsfeed.content import ArticleDraft, ArticleService, ClaimAdminGate, LocalStateStore
from newsfeed.content.articles import DATE_FORMAT_MESSAGE
from newsfeed.utils.exceptions import (
    DocumentNotFoundError,
    PermissionDeniedError,
    TransportUnavailableError,
    ValidationError,
)


@pytest.fixture
def admin_service(controlled_store, test_config, fake_sleep):
    gate = ClaimAdminGate(lambda: {"admin": True})
    return ArticleService(controlled_store, config=test_config, admin_gate=gate, sleep=fake_sleep)


@pytest.fixture
def reader_service(controlled_store, test_config, fake_sleep):
    return ArticleService(controlled_store, config=test_config, sleep=fake_sleep)


@pytest.fixture
def local_state(tmp_path):
    return LocalStateStore(str(tmp_path / "state.json"))


def draft(**overrides):
    values = dict(
        title="Budget vote passes",
        content="The national assembly approved the budget today.",
        category="politics-governance",
        slug="budget-vote-passes",
        writer="Jane Doe",
    )
    values.update(overrides)
    return ArticleDraft(**values)


class TestAdminGate:
    """Test the claims-based admin check."""

    def test_admin_claim(self):
        assert ClaimAdminGate(lambda: {"admin": True}).is_admin()

    def test_non_admin_claim(self):
        assert not ClaimAdminGate(lambda: {"admin": "yes"}).is_admin()
        assert not ClaimAdminGate(lambda: {}).is_admin()

    def test_signed_out(self):
        assert not ClaimAdminGate(lambda: None).is_admin()


class TestReads:
    """Test single-article reads."""

    @pytest.mark.asyncio
    async def test_get_by_slug(self, reader_service):
        article = await reader_service.get_by_slug("article-05", "sports")
        assert article.id == "s05"

    @pytest.mark.asyncio
    async def test_get_by_slug_wrong_category(self, reader_service):
        assert await reader_service.get_by_slug("article-05", "politics-governance") is None

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, reader_service):
        with pytest.raises(DocumentNotFoundError):
            await reader_service.get("missing")

    @pytest.mark.asyncio
    async def test_breaking_news_prefers_flagged(self, reader_service, memory_store, article_data):
        memory_store.seed("articles", "b1", article_data(3, "sports", breakingNews=True))
        article = await reader_service.breaking_news()
        assert article.id == "b1"

    @pytest.mark.asyncio
    async def test_breaking_news_falls_back_to_newest(self, reader_service):
        article = await reader_service.breaking_news()
        assert article.id == "p03"

    @pytest.mark.asyncio
    async def test_breaking_news_empty_store(self, empty_store, test_config, fake_sleep):
        service = ArticleService(empty_store, config=test_config, sleep=fake_sleep)
        assert await service.breaking_news() is None

    @pytest.mark.asyncio
    async def test_fact_check_highlights(self, reader_service, memory_store, article_data):
        memory_store.seed("articles", "f1", article_data(1, "fact-check", verified=True))
        memory_store.seed("articles", "f2", article_data(2, "fact-check", verified=False))
        memory_store.seed("articles", "f3", article_data(3, "fact-check", verified=True))
        memory_store.seed("articles", "f4", article_data(4, "fact-check", verified=True))

        highlights = await reader_service.fact_check_highlights()

        assert len(highlights) == 2
        assert all(a.get("verified") for a in highlights)

    @pytest.mark.asyncio
    async def test_reads_are_retried(self, reader_service, controlled_store):
        controlled_store.fail_with(TransportUnavailableError("down"))
        assert (await reader_service.get_by_slug("article-01", "sports")).id == "s01"


class TestOpenArticle:
    """Test opening an article page, including a staged preview."""

    @pytest.mark.asyncio
    async def test_stored_article_counts_a_view(self, reader_service, memory_store, local_state):
        view = await reader_service.open_article("article-05", "sports", local_state)

        assert view.document.id == "s05"
        assert not view.is_preview
        assert view.comments_enabled
        assert (await memory_store.get("articles", "s05")).get("views") == 1

    @pytest.mark.asyncio
    async def test_matching_preview_is_served(self, admin_service, reader_service, memory_store, local_state):
        admin_service.stage_preview(draft(category="sports", slug="article-05", writer=""), local_state)

        view = await reader_service.open_article("article-05", "sports", local_state)

        assert view.is_preview
        assert not view.comments_enabled
        assert view.document.id == "preview"
        assert view.document.get("title") == "Budget vote passes"
        assert view.document.get("writer") == "Anonymous"
        assert (await memory_store.get("articles", "s05")).get("views", 0) == 0

    @pytest.mark.asyncio
    async def test_preview_for_other_slug_is_ignored(self, admin_service, reader_service, local_state):
        admin_service.stage_preview(draft(), local_state)

        view = await reader_service.open_article("article-05", "sports", local_state)

        assert view.document.id == "s05"
        assert not view.is_preview

    @pytest.mark.asyncio
    async def test_preview_for_other_category_is_ignored(self, admin_service, reader_service, local_state):
        admin_service.stage_preview(draft(category="politics-governance", slug="article-05"), local_state)

        view = await reader_service.open_article("article-05", "sports", local_state)

        assert view.document.id == "s05"

    @pytest.mark.asyncio
    async def test_missing_article(self, reader_service, local_state):
        assert await reader_service.open_article("nope", "sports", local_state) is None

    def test_staging_requires_admin(self, reader_service, local_state):
        with pytest.raises(PermissionDeniedError):
            reader_service.stage_preview(draft(), local_state)
        assert local_state.get_preview() is None


class TestEngagement:
    """Test views and likes."""

    @pytest.mark.asyncio
    async def test_record_view(self, reader_service, memory_store):
        await reader_service.record_view("s01")
        await reader_service.record_view("s01")
        assert (await memory_store.get("articles", "s01")).get("views") == 2

    @pytest.mark.asyncio
    async def test_like_once_per_client(self, reader_service, memory_store, local_state):
        assert await reader_service.like("s01", local_state) is True
        assert await reader_service.like("s01", local_state) is False
        assert (await memory_store.get("articles", "s01")).get("likes") == 1
        assert local_state.is_liked("s01")


class TestPublish:
    """Test admin article writes."""

    @pytest.mark.asyncio
    async def test_non_admin_refused(self, reader_service):
        with pytest.raises(PermissionDeniedError):
            await reader_service.publish(draft())

    @pytest.mark.asyncio
    async def test_create_sets_counters_and_timestamp(self, admin_service, memory_store):
        article_id = await admin_service.publish(draft())
        doc = await memory_store.get("articles", article_id)
        assert doc.get("title_lowercase") == "budget vote passes"
        assert doc.get("likes") == 0
        assert doc.get("views") == 0
        assert isinstance(doc.get("createdAt"), datetime)

    @pytest.mark.asyncio
    async def test_update_keeps_counters(self, admin_service, memory_store):
        await memory_store.increment("articles", "p01", "likes", 5)
        created = (await memory_store.get("articles", "p01")).get("createdAt")

        await admin_service.publish(draft(title="Budget vote delayed"), article_id="p01")

        doc = await memory_store.get("articles", "p01")
        assert doc.get("title") == "Budget vote delayed"
        assert doc.get("likes") == 5
        assert doc.get("createdAt") == created

    @pytest.mark.asyncio
    async def test_publish_clears_preview(self, admin_service, local_state):
        local_state.stage_preview({"title": "Budget vote passes"})
        await admin_service.publish(draft(), local_state=local_state)
        assert local_state.get_preview() is None

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"title": "Hey"}, "Title must be at least 5 characters."),
            ({"content": "too short"}, "Content must be at least 20 characters."),
            ({"category": ""}, "Category is required."),
            ({"category": "weather"}, 'Invalid category "weather".'),
            ({"image": "not a url"}, "Image URL is invalid."),
            ({"video": "nope"}, "Video URL is invalid."),
            ({"slug": "  "}, "Slug is required."),
        ],
    )
    def test_validation(self, overrides, message):
        with pytest.raises(ValidationError) as exc_info:
            draft(**overrides).validate()
        assert exc_info.value.message == message

    def test_valid_media_urls(self):
        draft(image="https://cdn.example.com/a.jpg", video="https://youtu.be/x").validate()

    @pytest.mark.asyncio
    async def test_delete(self, admin_service, memory_store):
        await admin_service.delete("s01")
        assert await memory_store.get("articles", "s01") is None

    @pytest.mark.asyncio
    async def test_delete_requires_admin(self, reader_service):
        with pytest.raises(PermissionDeniedError):
            await reader_service.delete("s01")


class TestAdminSearch:
    """Test admin search modes."""

    @pytest.mark.asyncio
    async def test_empty_lists_newest(self, admin_service):
        results = await admin_service.admin_search("")
        assert [a.id for a in results[:2]] == ["p03", "p02"]
        assert len(results) == 17

    @pytest.mark.asyncio
    async def test_date_search(self, admin_service, memory_store, article_data):
        for doc_id, hour, day in [("d1", 1, 18), ("d2", 2, 18), ("d3", 0, 19)]:
            created = datetime(2025, 9, day, hour, tzinfo=timezone.utc)
            memory_store.seed("articles", doc_id, article_data(1, "sports", createdAt=created))

        results = await admin_service.admin_search("2025-09-18")

        assert [a.id for a in results] == ["d2", "d1"]

    @pytest.mark.asyncio
    async def test_bad_date(self, admin_service):
        with pytest.raises(ValidationError) as exc_info:
            await admin_service.admin_search("2025-13-45")
        assert exc_info.value.message == DATE_FORMAT_MESSAGE

    @pytest.mark.asyncio
    async def test_title_and_writer_merged(self, admin_service, memory_store, article_data):
        memory_store.seed("articles", "w1", article_data(200, "sports", title="Zebra crossing", writer="Zelda"))
        memory_store.seed("articles", "w2", article_data(201, "sports", title="Other", writer="Zed"))

        results = await admin_service.admin_search("Ze")

        assert sorted(a.id for a in results) == ["w1", "w2"]

    @pytest.mark.asyncio
    async def test_requires_admin(self, reader_service):
        with pytest.raises(PermissionDeniedError):
            await reader_service.admin_search("")
