"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from supabase import ClientOptions, create_client

from progress_portal.adapters.local_state import JsonFileLocalState, MemoryLocalState
from progress_portal.adapters.openai_report_client import OpenAIReportClient
from progress_portal.adapters.supabase_content_store import SupabaseContentStore
from progress_portal.adapters.supabase_session_provider import SupabaseSessionProvider
from progress_portal.config import Settings
from progress_portal.domain.view import AppState
from progress_portal.services.editor import UpdateEditor
from progress_portal.services.insights import InsightService
from progress_portal.services.preferences import PreferenceService
from progress_portal.services.projects import ContentStore, ProjectService
from progress_portal.services.sessions import SessionService
from progress_portal.services.unlocks import UnlockService
from progress_portal.services.uploads import UploadPipeline
from progress_portal.services.view import (
    DeviceStateStore,
    PortalSessions,
    ViewController,
    active_upload_target,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: ContentStore
    session_service: SessionService
    project_service: ProjectService
    editor: UpdateEditor
    insight_service: InsightService
    sessions: PortalSessions
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    auth_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )
    store = SupabaseContentStore(
        client=supabase_client,
        table=resolved_settings.supabase_projects_table,
        bucket=resolved_settings.supabase_media_bucket,
    )
    state_path = Path(resolved_settings.local_state_path)
    report_client = (
        OpenAIReportClient.create(resolved_settings.openai_api_key)
        if resolved_settings.openai_api_key
        else None
    )

    def device_state(device_id: str | None) -> DeviceStateStore:
        if device_id is None:
            return MemoryLocalState()
        return JsonFileLocalState(state_path, device_id)

    async def close_resources() -> None:
        if report_client is not None:
            await report_client.close()

    return wire_container(
        settings=resolved_settings,
        store=store,
        session_service=SessionService(SupabaseSessionProvider(auth_client)),
        device_state=device_state,
        insight_service=InsightService(
            client=report_client,
            model=resolved_settings.openai_model,
            max_retries=resolved_settings.report_max_retries,
            base_delay_seconds=resolved_settings.report_base_delay_seconds,
        ),
        close_resources=close_resources,
    )


def wire_container(
    *,
    settings: Settings,
    store: ContentStore,
    session_service: SessionService,
    device_state: Callable[[str | None], DeviceStateStore],
    insight_service: InsightService,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire the store-backed services and per-device view controllers."""
    project_service = ProjectService(store)
    editor = UpdateEditor(store)

    def build_controller(local_state: DeviceStateStore) -> ViewController:
        state = AppState()
        pipeline = UploadPipeline(
            store=store,
            target=partial(active_upload_target, state),
            max_file_bytes=settings.max_upload_bytes,
            settle_seconds=settings.upload_settle_seconds,
            clear_seconds=settings.upload_clear_seconds,
        )
        return ViewController(
            state=state,
            store=store,
            session_service=session_service,
            project_service=project_service,
            unlock_service=UnlockService(local_state),
            editor=editor,
            pipeline=pipeline,
            preference_service=PreferenceService(local_state),
        )

    return AppContainer(
        settings=settings,
        store=store,
        session_service=session_service,
        project_service=project_service,
        editor=editor,
        insight_service=insight_service,
        sessions=PortalSessions(build=build_controller, device_state=device_state),
        close_resources=close_resources,
    )
