from dependency_injector import containers, providers
from cache.context import DispatchContext
from cache.smart_cache import SmartDataCache
from clients.sheets_client import SheetsClient
from services.data_service import SheetDataService
from services.request_service import RequestService
from services.rider_service import RiderService
from ui.assign_page import AssignPage
from ui.dashboard_page import DashboardPage
from ui.requests_page import RequestsPage
from ui.riders_page import RidersPage
from utils.schema_utils import load_sheet_schema
from workflows.assignment_workflow import AssignmentWorkflow
from workflows.request_update_workflow import RequestUpdateWorkflow
from config.config import SETTINGS


class Container(containers.DeclarativeContainer):
    schema = providers.Object(load_sheet_schema(SETTINGS.sheet_schema_path or None))

    # Clients
    sheets_client = providers.Singleton(
        SheetsClient, spreadsheet_id=SETTINGS.spreadsheet_id
    )

    # Cache and pending writes
    cache = providers.Singleton(
        SmartDataCache, default_timeout=SETTINGS.cache_ttl_seconds
    )
    context = providers.Singleton(
        DispatchContext,
        store=sheets_client,
        cache=cache,
        batch_threshold=SETTINGS.write_batch_threshold,
    )

    # Services
    data_service = providers.Singleton(
        SheetDataService, store=sheets_client, context=context, schema=schema
    )
    rider_service = providers.Singleton(
        RiderService, context=context, data_service=data_service, schema=schema
    )
    request_service = providers.Singleton(
        RequestService, context=context, data_service=data_service, schema=schema
    )

    # Workflows
    assignment_workflow = providers.Singleton(
        AssignmentWorkflow,
        context=context,
        data_service=data_service,
        request_service=request_service,
        rider_service=rider_service,
    )
    request_update_workflow = providers.Singleton(
        RequestUpdateWorkflow, request_service=request_service
    )

    # UI Pages
    dashboard_page = providers.Singleton(
        DashboardPage,
        context=context,
        data_service=data_service,
        request_service=request_service,
    )
    requests_page = providers.Singleton(
        RequestsPage,
        request_service=request_service,
        request_update_workflow=request_update_workflow,
        schema=schema,
    )
    assign_page = providers.Singleton(
        AssignPage,
        data_service=data_service,
        request_service=request_service,
        rider_service=rider_service,
        assignment_workflow=assignment_workflow,
    )
    riders_page = providers.Singleton(RidersPage, rider_service=rider_service, schema=schema)
