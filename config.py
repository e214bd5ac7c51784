"""
Configuration file for SEO Dashboard
"""
import os
from dataclasses import dataclass
from typing import List

@dataclass
class DashboardConfig:
    """Configuration settings for the SEO dashboard service"""

    # Database settings
    db_path: str = "seo_dashboard.db"

    # Aggregation settings
    default_period: str = "30d"
    top_keywords_limit: int = 10
    total_pages_fallback: int = 50

    # Traffic source markers (substring match on the referrer)
    search_engine_markers: List[str] = None
    social_markers: List[str] = None

    # Static public pages counted towards the total page count
    static_pages: List[str] = None

    # PageSpeed Insights collection
    pagespeed_api_key: str = ""
    pagespeed_endpoint: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    timeout: int = 60
    collection_urls: List[str] = None

    # Reporting
    report_directory: str = "seo_reports"

    # Scheduling
    tasks_file: str = "tasks.pkl"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_format: str = "%(asctime)s - %(levelname)s - %(message)s"

    def __post_init__(self):
        if self.search_engine_markers is None:
            self.search_engine_markers = ["google", "bing", "yahoo", "duckduckgo", "baidu", "yandex"]

        if self.social_markers is None:
            self.social_markers = ["facebook", "twitter", "instagram", "linkedin", "pinterest", "youtube"]

        if self.static_pages is None:
            self.static_pages = [
                "/", "/web", "/m",
                "/properties", "/web/properties", "/m/properties",
                "/public-listings", "/m/public-listings",
                "/blogs", "/web/blogs", "/m/blogs",
                "/contact", "/web/contact", "/m/contact",
                "/web/more", "/more",
                "/terms", "/m/terms",
                "/privacy", "/m/privacy",
                "/faqs", "/m/faqs",
                "/support", "/m/support",
                "/wishlist", "/m/wishlist",
                "/seller-registration",
                "/users/login", "/users/register", "/users/forgot-password",
                "/users/confirm-email", "/users/reset-password",
                "/profile", "/m/profile",
                "/notifications", "/m/notifications",
                "/customer/dashboard", "/agent/dashboard",
                "/properties/add",
            ]

        if self.collection_urls is None:
            self.collection_urls = []

        if not self.pagespeed_api_key:
            self.pagespeed_api_key = os.environ.get("GOOGLE_PAGESPEED_API_KEY", "")

        # Ensure report directory exists
        if not os.path.exists(self.report_directory):
            os.makedirs(self.report_directory)

# Default configuration instance
config = DashboardConfig()
