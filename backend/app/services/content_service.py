"""
Content Services - homepage settings, news, activities and advertisements

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List, Optional, Tuple

from app.core.cache import get_cache
from app.core.clock import utcnow, as_utc
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.text import slugify, unique_slug
from app.domain.content import (
    HomepageSettings, HomepageUpdate, default_homepage_settings, deep_merge,
    News, NewsCreate, NewsUpdate,
    Activity, ActivityCreate, ActivityUpdate,
    Advertisement, AdvertisementCreate, AdvertisementUpdate,
)
from app.repositories.content_repository import (
    HomepageRepository, NewsRepository, ActivityRepository, AdvertisementRepository,
)

logger = logging.getLogger(__name__)

HOMEPAGE_CACHE_KEY = "homepage:published"
HOMEPAGE_CACHE_TTL = 300


# =============================================================================
# Homepage settings
# =============================================================================

class HomepageService:
    """Draft/publish workflow for the storefront homepage"""

    def __init__(self, repo: Optional[HomepageRepository] = None, cache=None):
        self.repo = repo or HomepageRepository()
        self.cache = cache or get_cache()

    def get_published(self) -> Dict:
        """Published document; a default one is created on first request"""
        cached = self.cache.get(HOMEPAGE_CACHE_KEY)
        if cached is not None:
            return cached

        published = self.repo.find_by_status("published")
        if published is None:
            published = self.repo.create("published", 1, default_homepage_settings(), published=True)
            logger.info("Created default published homepage settings")

        data = published.to_dict()
        self.cache.set(HOMEPAGE_CACHE_KEY, data, HOMEPAGE_CACHE_TTL)
        return data

    def get_draft(self, user_id: Optional[int] = None) -> HomepageSettings:
        draft = self.repo.find_by_status("draft")
        if draft:
            return draft

        published = self.repo.find_by_status("published")
        if published:
            return self.repo.create("draft", published.version + 1, published.settings, updated_by=user_id)
        return self.repo.create("draft", 1, default_homepage_settings(), updated_by=user_id)

    def update(self, payload: HomepageUpdate, user_id: Optional[int] = None) -> HomepageSettings:
        """
        Merge section updates over the current document.

        status=published replaces the live document (version + 1) and drops
        the draft; anything else only touches the draft.
        """
        draft = self.repo.find_by_status("draft")
        published = self.repo.find_by_status("published")
        base = draft or published
        current_settings = base.settings if base else default_homepage_settings()
        merged = deep_merge(current_settings, payload.settings)

        if payload.status == "published":
            version = (published.version if published else 0) + 1
            result = self.repo.publish(merged, version, updated_by=user_id)
            self.cache.delete(HOMEPAGE_CACHE_KEY)
            logger.info(f"Published homepage settings v{version}")
            return result

        if draft:
            version = draft.version
        else:
            version = (published.version + 1) if published else 1
        return self.repo.save_draft(merged, version, updated_by=user_id)


# =============================================================================
# News
# =============================================================================

class NewsService:
    """News articles with slugs and publish dates"""

    def __init__(self, repo: Optional[NewsRepository] = None):
        self.repo = repo or NewsRepository()

    def list_published(self, locale: Optional[str], category: Optional[str], search: Optional[str],
                       limit: int, offset: int) -> Tuple[List[News], int]:
        return self.repo.find_all(
            status="published", locale=locale, category=category, search=search,
            limit=limit, offset=offset,
        )

    def list_all(self, status: Optional[str], locale: Optional[str], search: Optional[str],
                 limit: int, offset: int) -> Tuple[List[News], int]:
        return self.repo.find_all(status=status, locale=locale, search=search, limit=limit, offset=offset)

    def get_published_by_slug(self, slug: str) -> News:
        news = self.repo.find_published_by_slug(slug)
        if not news:
            raise NotFoundError("News", message="News not found")
        return news

    def get_news(self, news_id: int) -> News:
        news = self.repo.find_by_id(news_id)
        if not news:
            raise NotFoundError("News", news_id)
        return news

    def create_news(self, payload: NewsCreate, user_id: Optional[int] = None) -> News:
        data = payload.model_dump()
        if not (data.get("title") and data.get("excerpt") and data.get("content")):
            raise ValidationError("Title, excerpt and content are required")

        data["slug"] = unique_slug(slugify(data.get("slug") or data["title"]), self.repo.slug_exists)
        if data["status"] == "published":
            data["published_at"] = utcnow()
        data["created_by"] = user_id

        news = self.repo.create(data)
        logger.info(f"Created news {news.id} ({news.slug})")
        return news

    def update_news(self, news_id: int, payload: NewsUpdate) -> News:
        current = self.get_news(news_id)
        fields = payload.model_dump(exclude_unset=True)

        for required in ("title", "excerpt", "content"):
            if required in fields and not fields[required]:
                raise ValidationError(f"{required.capitalize()} cannot be empty")

        if fields.get("slug"):
            fields["slug"] = slugify(fields["slug"])
            if self.repo.slug_exists(fields["slug"], exclude_id=news_id):
                raise ConflictError("News slug already exists")
        elif fields.get("title") and fields["title"] != current.title:
            fields["slug"] = unique_slug(
                slugify(fields["title"]),
                lambda slug: self.repo.slug_exists(slug, exclude_id=news_id),
            )

        if fields.get("status") == "published" and current.published_at is None:
            fields["published_at"] = utcnow()

        return self.repo.update(news_id, fields)

    def delete_news(self, news_id: int) -> None:
        if not self.repo.delete(news_id):
            raise NotFoundError("News", news_id)


# =============================================================================
# Activities
# =============================================================================

class ActivityService:

    def __init__(self, repo: Optional[ActivityRepository] = None):
        self.repo = repo or ActivityRepository()

    def list_published(self, limit: int, offset: int) -> Tuple[List[Activity], int]:
        return self.repo.find_all(published=True, with_content=False, limit=limit, offset=offset)

    def list_all(self, published: Optional[bool], search: Optional[str],
                 limit: int, offset: int) -> Tuple[List[Activity], int]:
        return self.repo.find_all(published=published, search=search, limit=limit, offset=offset)

    def get_activity(self, activity_id: int, published_only: bool = False) -> Activity:
        activity = self.repo.find_by_id(activity_id, published_only=published_only)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    def create_activity(self, payload: ActivityCreate, user_id: Optional[int] = None) -> Activity:
        data = payload.model_dump()
        if not (data.get("title") and data.get("content")):
            raise ValidationError("Title and content are required")
        data["created_by"] = user_id
        activity = self.repo.create(data)
        logger.info(f"Created activity {activity.id}")
        return activity

    def update_activity(self, activity_id: int, payload: ActivityUpdate) -> Activity:
        fields = payload.model_dump(exclude_unset=True)
        for required in ("title", "content"):
            if required in fields and not fields[required]:
                raise ValidationError(f"{required.capitalize()} cannot be empty")
        activity = self.repo.update(activity_id, fields)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    def toggle(self, activity_id: int) -> Activity:
        activity = self.repo.toggle_published(activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    def delete_activity(self, activity_id: int) -> None:
        if not self.repo.delete(activity_id):
            raise NotFoundError("Activity", activity_id)


# =============================================================================
# Advertisements
# =============================================================================

def primary_language(accept_language: Optional[str]) -> Optional[str]:
    """'vi-VN,vi;q=0.9,en;q=0.8' -> 'vi'"""
    if not accept_language:
        return None
    first = accept_language.split(",")[0].split(";")[0].strip()
    return first.split("-")[0].lower() or None


class AdvertisementService:

    def __init__(self, repo: Optional[AdvertisementRepository] = None):
        self.repo = repo or AdvertisementRepository()

    def get_active(self, role: Optional[str], locale: Optional[str]) -> Optional[Advertisement]:
        """
        The ad to show the caller right now, or None.

        Candidates are live ads matching the caller's role, best priority
        first; the best one must also match the locale when it targets any.
        """
        candidates = [ad for ad in self.repo.find_live() if ad.matches_role(role)]
        if not candidates:
            return None
        best = candidates[0]
        if not best.matches_locale(locale):
            return None
        return best

    def list_ads(self, limit: int, offset: int) -> Tuple[List[Advertisement], int]:
        return self.repo.find_all(limit=limit, offset=offset)

    def get_ad(self, ad_id: int) -> Advertisement:
        ad = self.repo.find_by_id(ad_id)
        if not ad:
            raise NotFoundError("Advertisement", ad_id)
        return ad

    def create_ad(self, payload: AdvertisementCreate, user_id: Optional[int] = None) -> Advertisement:
        data = payload.model_dump()
        data["created_by"] = user_id
        ad = self.repo.create(data)
        logger.info(f"Created advertisement {ad.id}")
        return ad

    def update_ad(self, ad_id: int, payload: AdvertisementUpdate) -> Advertisement:
        current = self.get_ad(ad_id)
        fields = payload.model_dump(exclude_unset=True)

        start_date = fields.get("start_date", current.start_date)
        end_date = fields.get("end_date", current.end_date)
        if start_date and end_date and as_utc(end_date) < as_utc(start_date):
            raise ValidationError("end_date must not be before start_date")

        return self.repo.update(ad_id, fields)

    def toggle(self, ad_id: int) -> Advertisement:
        ad = self.repo.toggle_enabled(ad_id)
        if not ad:
            raise NotFoundError("Advertisement", ad_id)
        return ad

    def delete_ad(self, ad_id: int) -> None:
        if not self.repo.delete(ad_id):
            raise NotFoundError("Advertisement", ad_id)
