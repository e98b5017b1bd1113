import os
from collections.abc import Iterator
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from service_manual.adapters.clock import SystemClock
from service_manual.adapters.link_checker import HttpLinkChecker, NullLinkChecker
from service_manual.adapters.markdown import MistuneMarkdownRenderer
from service_manual.adapters.publishing_api import PublishingApiClient
from service_manual.adapters.sqlite.repos import (
    SQLiteEditionRepo,
    SQLiteGuideRepo,
    SQLiteTopicRepo,
    SQLiteUserRepo,
)
from service_manual.components.editions import EditionStateMachine, EditionWorkflow
from service_manual.components.editions.ports import LinkCheckerPort
from service_manual.components.guides import GuideService
from service_manual.domain.entities import User
from service_manual.rules.loader import load_rules
from service_manual.rules.models import Rules

_TRUTHY = {"1", "true", "yes", "on"}


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SMP_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "service_manual.db")
        self.rules_path = Path(os.environ.get("SMP_RULES_PATH", self.base_dir / "rules.yaml"))
        # Operational override; the rules file decides otherwise.
        self.force_self_approval = (
            os.environ.get("ALLOW_SELF_APPROVAL", "").strip().lower() in _TRUTHY
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules_cached(str(settings.rules_path))


@lru_cache
def _load_rules_cached(path: str) -> Rules:
    return load_rules(Path(path))


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_guide_repo(settings: Settings = Depends(get_settings)) -> SQLiteGuideRepo:
    return SQLiteGuideRepo(settings.db_path)


def get_edition_repo(settings: Settings = Depends(get_settings)) -> SQLiteEditionRepo:
    return SQLiteEditionRepo(settings.db_path)


def get_topic_repo(settings: Settings = Depends(get_settings)) -> SQLiteTopicRepo:
    return SQLiteTopicRepo(settings.db_path)


# --- Adapters ---
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_link_checker(rules: Rules = Depends(get_rules)) -> Iterator[LinkCheckerPort]:
    if not rules.link_checking.enabled:
        yield NullLinkChecker()
        return
    checker = HttpLinkChecker.from_rules(rules.link_checking)
    try:
        yield checker
    finally:
        checker.close()


# --- Component Services ---
def get_state_machine(
    rules: Rules = Depends(get_rules),
    settings: Settings = Depends(get_settings),
    link_checker: LinkCheckerPort = Depends(get_link_checker),
) -> EditionStateMachine:
    return EditionStateMachine(
        allow_self_approval=rules.workflow.allow_self_approval or settings.force_self_approval,
        link_checker=link_checker,
        renderer=MistuneMarkdownRenderer(),
    )


def get_workflow(
    edition_repo: SQLiteEditionRepo = Depends(get_edition_repo),
    guide_repo: SQLiteGuideRepo = Depends(get_guide_repo),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> EditionWorkflow:
    return EditionWorkflow(
        edition_repo=edition_repo,
        guide_repo=guide_repo,
        state_machine=state_machine,
        clock=get_clock(),
    )


def get_guide_service(
    rules: Rules = Depends(get_rules),
    guide_repo: SQLiteGuideRepo = Depends(get_guide_repo),
    edition_repo: SQLiteEditionRepo = Depends(get_edition_repo),
    topic_repo: SQLiteTopicRepo = Depends(get_topic_repo),
    state_machine: EditionStateMachine = Depends(get_state_machine),
) -> GuideService:
    return GuideService(
        guide_repo=guide_repo,
        edition_repo=edition_repo,
        section_repo=topic_repo,
        state_machine=state_machine,
        clock=get_clock(),
        slug_prefix=rules.guides.slug_prefix,
    )


# --- Auth ---
def get_current_user(
    x_authenticated_user: Annotated[str | None, Header()] = None,
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    """The signed-in user, as identified by the authentication proxy."""
    if not x_authenticated_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    try:
        user_id = UUID(x_authenticated_user)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid user id"
        ) from None

    user = user_repo.get_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if "signin" not in user.permissions:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return user


def get_publishing_api(
    rules: Rules = Depends(get_rules),
    current_user: User = Depends(get_current_user),
) -> Iterator[PublishingApiClient]:
    """Publishing API client acting on behalf of the signed-in user."""
    client = PublishingApiClient.from_rules(rules.publishing_api, authenticated_user=current_user.uid)
    try:
        yield client
    finally:
        client.close()
