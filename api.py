"""
FastAPI web application for the SEO Dashboard
"""
from fastapi import FastAPI, Depends, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field, field_validator
from typing import Dict, Any, List, Optional, Literal
import logging
from datetime import datetime
import uvicorn

from app import SEODashboardApp
from models import SEOAlert
from config import config

logger = logging.getLogger(__name__)

# Pydantic models for API requests
class PageSpeedMetrics(BaseModel):
    desktop: Optional[float] = None
    mobile: Optional[float] = None

class CoreWebVitalsMetrics(BaseModel):
    lcp: Optional[float] = None
    fid: Optional[float] = None
    cls: Optional[float] = None
    fcp: Optional[float] = None
    ttfb: Optional[float] = None

class PerformanceMetrics(BaseModel):
    pageSpeed: Optional[PageSpeedMetrics] = None
    coreWebVitals: Optional[CoreWebVitalsMetrics] = None
    mobileUsability: Optional[float] = None

class PerformanceMetricsRequest(BaseModel):
    url: str
    metrics: PerformanceMetrics

    @field_validator('url')
    @classmethod
    def url_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('URL cannot be empty')
        return v

class AlertCreateRequest(BaseModel):
    alert_type: str
    severity: Literal["critical", "high", "medium", "low"]
    title: str
    message: str
    url: Optional[str] = None
    threshold_value: Optional[float] = None
    current_value: Optional[float] = None
    metric_name: Optional[str] = None

class AlertUpdateRequest(BaseModel):
    id: int
    status: Literal["active", "acknowledged", "resolved"]

class AuditHeading(BaseModel):
    level: int
    text: str = ""

class AuditImage(BaseModel):
    src: Optional[str] = None
    alt: Optional[str] = None

class AuditLink(BaseModel):
    href: Optional[str] = None
    isExternal: bool = False

class PageContent(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    headings: List[AuditHeading] = []
    images: List[AuditImage] = []
    links: List[AuditLink] = []
    body: Optional[str] = None

class AuditRequest(BaseModel):
    url: str
    content: PageContent
    targetKeywords: List[str] = []

    @field_validator('url')
    @classmethod
    def url_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('URL cannot be empty')
        return v

class ReportRequest(BaseModel):
    reportType: str = "comprehensive"
    period: str = Field(default=config.default_period)
    pdf: bool = False

# Response models
class APIResponse(BaseModel):
    success: bool
    message: str
    data: Optional[Any] = None
    timestamp: datetime

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    components: Dict[str, Any]
    metrics: Dict[str, Any]
    active_tasks: int

# Initialize FastAPI app
app = FastAPI(
    title="SEO Dashboard API",
    description="SEO scoring, analytics and performance monitoring API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global dashboard app instance
dashboard_app = None

@app.on_event("startup")
async def startup_event():
    """Initialize the dashboard app on startup"""
    global dashboard_app
    try:
        dashboard_app = SEODashboardApp()
        logger.info("SEO Dashboard API started successfully")
    except Exception as e:
        logger.error(f"Failed to initialize dashboard app: {e}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    global dashboard_app
    if dashboard_app:
        dashboard_app.shutdown()
        logger.info("SEO Dashboard API shut down successfully")

class DashboardUnavailable(Exception):
    """Raised when a request arrives before the dashboard app is initialized"""

def get_dashboard_app():
    """Dependency to get the dashboard app instance"""
    if dashboard_app is None:
        raise DashboardUnavailable("Dashboard app not initialized")
    return dashboard_app

def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

def ok(message: str, data: Any = None) -> APIResponse:
    return APIResponse(success=True, message=message, data=data, timestamp=datetime.now())

# API Endpoints

@app.get("/", response_model=Dict[str, str])
async def root():
    return {
        "message": "SEO Dashboard API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health", response_model=HealthResponse)
async def health_check(app: SEODashboardApp = Depends(get_dashboard_app)):
    """Health check endpoint"""
    try:
        status = app.get_system_status()
        return HealthResponse(
            status=status["health"]["overall_status"],
            timestamp=datetime.now(),
            components=status["health"]["components"],
            metrics=status["metrics"],
            active_tasks=status["active_tasks"]
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return error_response("Health check failed")

@app.get("/seo/dashboard", response_model=APIResponse)
async def get_dashboard(
    period: str = Query(config.default_period, description="7d, 30d or 90d"),
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """SEO overview with the composite health score"""
    try:
        data = await app.get_dashboard(period)
        return ok("Dashboard data retrieved", data)
    except Exception as e:
        logger.error(f"Error fetching SEO dashboard data: {e}")
        return error_response("Failed to fetch SEO dashboard data")

@app.get("/seo/analytics", response_model=APIResponse)
async def get_analytics(
    period: str = Query(config.default_period, description="7d, 30d or 90d"),
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """Traffic, session, keyword and performance analytics"""
    try:
        data = await app.get_analytics(period)
        return ok("Analytics data retrieved", data)
    except Exception as e:
        logger.error(f"Error fetching SEO analytics: {e}")
        return error_response("Failed to fetch SEO analytics")

@app.get("/seo/performance", response_model=APIResponse)
async def get_performance(
    period: str = Query(config.default_period, description="7d, 30d or 90d"),
    url: Optional[str] = Query(None, description="Restrict to a single page URL"),
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    try:
        data = await app.get_performance(period, url)
        return ok("Performance data retrieved", data)
    except Exception as e:
        logger.error(f"Error fetching performance data: {e}")
        return error_response("Failed to fetch performance data")

@app.post("/seo/performance", response_model=APIResponse)
async def store_performance(
    request: PerformanceMetricsRequest,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """Store a performance measurement for a URL"""
    try:
        data = app.store_performance(request.url, request.metrics.model_dump(exclude_none=True))
        return ok("Performance metrics stored", data)
    except Exception as e:
        logger.error(f"Error storing performance data: {e}")
        return error_response("Failed to store performance data")

@app.get("/seo/alerts", response_model=APIResponse)
async def get_alerts(
    status: str = Query("active", description="Alert status to list"),
    limit: int = Query(20, ge=1, le=500),
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    try:
        alerts = app.list_alerts(status, limit)
        return ok(f"Retrieved {len(alerts)} alerts", [alert.__dict__ for alert in alerts])
    except Exception as e:
        logger.error(f"Error fetching SEO alerts: {e}")
        return error_response("Failed to fetch SEO alerts")

@app.post("/seo/alerts", response_model=APIResponse)
async def create_alert(
    request: AlertCreateRequest,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    try:
        alert = app.create_alert(SEOAlert(**request.model_dump()))
        return ok("Alert created", alert.__dict__)
    except Exception as e:
        logger.error(f"Error creating SEO alert: {e}")
        return error_response("Failed to create SEO alert")

@app.put("/seo/alerts", response_model=APIResponse)
async def update_alert(
    request: AlertUpdateRequest,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """Acknowledge, resolve or reopen an alert"""
    try:
        alert = app.update_alert(request.id, request.status)
    except Exception as e:
        logger.error(f"Error updating SEO alert: {e}")
        return error_response("Failed to update SEO alert")

    if alert is None:
        return error_response(f"Alert {request.id} not found", 404)
    return ok(f"Alert {request.id} marked {request.status}", alert.__dict__)

@app.post("/seo/reports", response_model=APIResponse)
async def generate_report(
    request: ReportRequest,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """Generate and store an SEO report"""
    try:
        data = await app.generate_report(request.period, request.reportType, request.pdf)
        return ok("Report generated", data)
    except Exception as e:
        logger.error(f"Error generating SEO report: {e}")
        return error_response("Failed to generate SEO report")

@app.get("/seo/reports/{report_id}/pdf")
async def download_report_pdf(
    report_id: int,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    try:
        path = app.render_report_pdf(report_id)
    except Exception as e:
        logger.error(f"Error rendering report {report_id}: {e}")
        return error_response("Failed to render SEO report")

    if path is None:
        return error_response(f"Report {report_id} not found", 404)
    return FileResponse(path, media_type="application/pdf", filename=f"seo_report_{report_id}.pdf")

@app.post("/seo/audit", response_model=APIResponse)
async def audit_page(
    request: AuditRequest,
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    """Run an on-page SEO audit over submitted page content"""
    try:
        data = app.audit_page(request.url, request.content.model_dump(), request.targetKeywords)
        return ok("SEO audit completed", data)
    except Exception as e:
        logger.error(f"Error performing SEO audit: {e}")
        return error_response("Failed to perform SEO audit")

@app.post("/cleanup", response_model=APIResponse)
async def cleanup_data(
    days_to_keep: int = Query(30, ge=1, description="Number of days of data to keep"),
    app: SEODashboardApp = Depends(get_dashboard_app)
):
    try:
        app.cleanup_old_data(days_to_keep)
        return ok(f"Data cleanup completed, kept last {days_to_keep} days", {"days_kept": days_to_keep})
    except Exception as e:
        logger.error(f"Error cleaning up data: {e}")
        return error_response("Failed to clean up data")

@app.exception_handler(DashboardUnavailable)
async def dashboard_unavailable_handler(request, exc):
    logger.error(f"Request rejected: {exc}")
    return error_response(str(exc))

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}")
    return error_response("Internal server error")

if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=config.api_host,
        port=config.api_port,
        reload=True,
        log_level="info"
    )
