"""
SEO report generation and PDF export
"""
import os
import logging
from typing import Dict, List, Optional
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from aggregator import SEOAggregator
from config import config
from database import DatabaseManager
from models import SEOAlert, SEOReport, Tier
from periods import resolve_period
from vitals import classify

logger = logging.getLogger(__name__)

GRADE_COLORS = {
    "A+": colors.HexColor("#15803d"),
    "A": colors.HexColor("#16a34a"),
    "B": colors.HexColor("#65a30d"),
    "C": colors.HexColor("#ca8a04"),
    "D": colors.HexColor("#ea580c"),
    "F": colors.HexColor("#dc2626"),
}


def generate_recommendations(seo_score: int, indexing_rate: float, alerts: List[SEOAlert],
                             core_web_vitals: Dict[str, float]) -> List[str]:
    recommendations = []

    if seo_score < 70:
        recommendations.append("Focus on improving overall SEO performance")

    if indexing_rate < 80:
        recommendations.append("Improve page indexing rate by submitting sitemap and fixing crawl errors")

    if classify("lcp", core_web_vitals.get("lcp", 0)) is not Tier.GOOD:
        recommendations.append("Optimize Largest Contentful Paint (LCP) for better performance")

    if classify("fid", core_web_vitals.get("fid", 0)) is not Tier.GOOD:
        recommendations.append("Reduce First Input Delay (FID) to improve interactivity")

    if classify("cls", core_web_vitals.get("cls", 0)) is not Tier.GOOD:
        recommendations.append("Fix Cumulative Layout Shift (CLS) issues")

    critical = sum(1 for alert in alerts if alert.severity == "critical")
    if critical > 0:
        recommendations.append(f"Address {critical} critical SEO issues immediately")

    if not recommendations:
        recommendations.append("Continue monitoring and optimizing for sustained growth")

    return recommendations


class ReportGenerator:
    """Builds, stores and renders SEO performance reports"""

    def __init__(self, db_manager: DatabaseManager, aggregator: SEOAggregator,
                 report_directory: str = None):
        self.db_manager = db_manager
        self.aggregator = aggregator
        self.report_directory = report_directory or config.report_directory

    async def generate(self, period: Optional[str] = None, report_type: str = "comprehensive",
                       now: Optional[datetime] = None) -> SEOReport:
        """Build a report from the dashboard figures and store it"""
        window = resolve_period(period, now)
        dashboard = await self.aggregator.get_dashboard(window.period, window.end)

        try:
            alerts = self.db_manager.get_alerts("active", 20)
        except Exception as e:
            logger.error(f"Error fetching alerts for report: {e}")
            alerts = []

        overview = dashboard["overview"]
        seo_score = overview["seoScore"]
        indexing_rate = seo_score["breakdown"]["indexing"]["rate"]
        core_web_vitals = dashboard["performance"]["coreWebVitals"]

        report = SEOReport(
            title="SEO Performance Report",
            generated_at=window.end.isoformat(),
            period=window.period,
            report_type=report_type,
            overview={
                "totalPages": overview["totalPages"],
                "indexedPages": overview["indexedPages"],
                "organicTraffic": overview["organicTraffic"],
                "domainAuthority": overview["domainAuthority"],
                "seoScore": seo_score["score"],
                "grade": seo_score["grade"],
                "indexingRate": indexing_rate,
            },
            performance=dict(core_web_vitals, pageSpeed=dashboard["performance"]["pageSpeed"]),
            issues=[
                {
                    "type": alert.alert_type,
                    "severity": alert.severity,
                    "title": alert.title,
                    "message": alert.message,
                    "url": alert.url,
                }
                for alert in alerts
            ],
            keywords=[
                {"keyword": k["keyword"], "position": k["position"], "searchVolume": k["traffic"]}
                for k in dashboard["content"]["topKeywords"]
            ],
            recommendations=generate_recommendations(
                seo_score["score"], indexing_rate, alerts, core_web_vitals
            ),
        )

        report.id = self.db_manager.save_report(report)
        logger.info(f"Generated report {report.id}: score {seo_score['score']} ({seo_score['grade']})")
        return report

    def render_pdf(self, report: SEOReport, path: str = None) -> str:
        """Draw the report onto an A4 PDF and return its path"""
        if path is None:
            os.makedirs(self.report_directory, exist_ok=True)
            path = os.path.join(self.report_directory, f"seo_report_{report.id or 'draft'}.pdf")

        c = canvas.Canvas(path, pagesize=A4)
        width, height = A4
        y = height - 2 * cm

        c.setFont("Helvetica-Bold", 18)
        c.drawString(2 * cm, y, report.title)
        y -= 0.8 * cm
        c.setFont("Helvetica", 10)
        c.drawString(2 * cm, y, f"Period: {report.period}    Generated: {report.generated_at}")

        # Score badge
        grade = report.overview.get("grade", "F")
        c.setFillColor(GRADE_COLORS.get(grade, colors.grey))
        c.roundRect(width - 6 * cm, height - 3.5 * cm, 4 * cm, 2.5 * cm, 8, fill=1, stroke=0)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", 26)
        c.drawCentredString(width - 4 * cm, height - 2.3 * cm, str(report.overview.get("seoScore", 0)))
        c.setFont("Helvetica", 11)
        c.drawCentredString(width - 4 * cm, height - 3.1 * cm, f"Grade {grade}")
        c.setFillColor(colors.black)

        y -= 1.5 * cm
        y = self._section(c, y, "Overview", [
            f"Total pages: {report.overview.get('totalPages', 0)}",
            f"Indexed pages: {report.overview.get('indexedPages', 0)} ({report.overview.get('indexingRate', 0)}%)",
            f"Organic traffic: {report.overview.get('organicTraffic', 0)}",
            f"Domain authority: {report.overview.get('domainAuthority', 0)}",
        ])
        y = self._section(c, y, "Core Web Vitals", [
            f"LCP: {report.performance.get('lcp', 0)} s",
            f"FID: {report.performance.get('fid', 0)} ms",
            f"CLS: {report.performance.get('cls', 0)}",
            f"Page speed (desktop): {report.performance.get('pageSpeed', 0)}",
        ])
        y = self._section(c, y, "Top Keywords", [
            f"#{k['position']}  {k['keyword']}  ({k['searchVolume']} searches)" for k in report.keywords
        ] or ["No keyword rankings in this period"])
        y = self._section(c, y, "Issues", [
            f"[{issue['severity']}] {issue['title']}: {issue['message']}" for issue in report.issues
        ] or ["No active issues"])
        self._section(c, y, "Recommendations", [f"- {r}" for r in report.recommendations])

        c.showPage()
        c.save()
        logger.info(f"Report PDF written to {path}")
        return path

    def _section(self, c: canvas.Canvas, y: float, title: str, lines: List[str]) -> float:
        _, height = A4
        if y < 4 * cm:
            c.showPage()
            y = height - 2 * cm

        c.setFont("Helvetica-Bold", 13)
        c.drawString(2 * cm, y, title)
        y -= 0.6 * cm
        c.setFont("Helvetica", 10)
        for line in lines:
            if y < 2 * cm:
                c.showPage()
                c.setFont("Helvetica", 10)
                y = height - 2 * cm
            c.drawString(2.4 * cm, y, line[:110])
            y -= 0.5 * cm
        return y - 0.4 * cm
