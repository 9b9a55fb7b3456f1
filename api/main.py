"""
FastAPI backend for the semantic query layer
Exposes planning, analysis and schema operations over REST
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Dict, Any

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import settings
from database.connectors import BaseConnector, create_connector
from database.metadata_loader import load_metadata_file
from database.northwind_metadata import NORTHWIND_METADATA
from state.plan_state import AnalysisRequest
from tools.error_manager import (
    SemanticLayerError, NotFoundError, NotConnectedError, InvalidRequestError,
    ExecutionFailedError, error_manager
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# HTTP status for each error family
ERROR_STATUS_CODES = {
    NotFoundError: 404,
    InvalidRequestError: 400,
    NotConnectedError: 503,
    ExecutionFailedError: 502,
}


def build_connector() -> BaseConnector:
    """Connector for the configured backend with its semantic metadata registered"""
    connector = create_connector(settings.backend, settings.database)
    if settings.metadata_path:
        metadata = load_metadata_file(settings.metadata_path)
    else:
        metadata = NORTHWIND_METADATA
    connector.initialize_metadata(metadata)
    return connector


@asynccontextmanager
async def lifespan(app: FastAPI):
    connector = build_connector()
    try:
        connector.connect()
    except ExecutionFailedError as e:
        # Planning still works offline; data endpoints answer 503 until restart
        logger.error(f"Database connection failed at startup: {e}")
    app.state.connector = connector

    yield
    connector.disconnect()


# Initialize FastAPI
app = FastAPI(
    title="Semantic Query Layer API",
    description="Business questions to SQL over registered semantic metadata",
    version="1.0.0",
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_connector(request: Request) -> BaseConnector:
    return request.app.state.connector


@app.exception_handler(SemanticLayerError)
async def semantic_layer_error_handler(request: Request, exc: SemanticLayerError):
    status_code = next(
        (code for error_class, code in ERROR_STATUS_CODES.items() if isinstance(exc, error_class)),
        500
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "user_message": exc.detail.get_user_message(),
            "detail": exc.detail.to_dict(),
        }
    )


# Pydantic Models
class PlanRequest(BaseModel):
    question: str

class PlanResponse(BaseModel):
    question: str
    plan: Dict[str, Any]
    sql: Optional[str] = None

class JoinPathResponse(BaseModel):
    source: str
    target: str
    description: str
    joins: List[Dict[str, Any]]


# Routes
@app.get("/")
async def root():
    return {
        "message": "Semantic Query Layer API",
        "version": "1.0.0",
        "status": "running"
    }

@app.get("/health")
def health_check(connector: BaseConnector = Depends(get_connector)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "database": "connected" if connector.is_connected() else "disconnected",
        "database_type": connector.get_database_type(),
        "errors": error_manager.get_error_stats()
    }

@app.get("/api/metadata")
def metadata_overview(connector: BaseConnector = Depends(get_connector)):
    """Registered tables, relationships, concepts and metrics"""
    return connector.metadata.get_overview()

@app.post("/api/plan", response_model=PlanResponse)
def plan_question(request: PlanRequest, connector: BaseConnector = Depends(get_connector)):
    """Query plan and generated SQL for a business question, without executing it"""
    plan = connector.metadata.analyze_business_question(request.question)
    sql = None
    if not plan.is_empty:
        sql = connector.engine.build_business_query(plan, AnalysisRequest(business_question=request.question))

    return PlanResponse(
        question=request.question,
        plan=plan.model_dump(mode="json"),
        sql=sql
    )

@app.post("/api/analyze")
def analyze(request: AnalysisRequest, connector: BaseConnector = Depends(get_connector)):
    """Run a business-question or direct analysis"""
    return connector.analyze(request).to_dict()

@app.get("/api/tables")
def list_tables(connector: BaseConnector = Depends(get_connector)):
    tables = connector.list_tables()
    return {"tables": tables, "count": len(tables)}

@app.get("/api/tables/{table_name}/schema")
def table_schema(table_name: str, connector: BaseConnector = Depends(get_connector)):
    return connector.get_table_schema(table_name)

@app.get("/api/join-path", response_model=JoinPathResponse)
def join_path(source: str, target: str, connector: BaseConnector = Depends(get_connector)):
    """Shortest chain of relationships between two tables"""
    path = connector.metadata.get_join_path(source, target)
    if path is None:
        raise NotFoundError("join path", f"{source} -> {target}")

    return JoinPathResponse(
        source=source,
        target=target,
        description=connector.metadata.join_resolver.describe_join_path(source, target),
        joins=[relationship.model_dump(mode="json", by_alias=True) for relationship in path]
    )

if __name__ == "__main__":
    import uvicorn
    print("=" * 70)
    print("🚀 Starting Semantic Query Layer API Server...")
    print("=" * 70)
    print("📍 API will be available at: http://localhost:8000")
    print("📍 API docs at: http://localhost:8000/docs")
    print("=" * 70)
    uvicorn.run(app, host="0.0.0.0", port=8000)
