"""Demo package - canned companies used when a scan runs in demo mode."""

from contextpack.demo.data import (
    DemoCompany,
    demo_companies,
    demo_company_for_url,
    mock_context_pack,
    mock_scrape_result,
)

__all__ = [
    "DemoCompany",
    "demo_companies",
    "demo_company_for_url",
    "mock_context_pack",
    "mock_scrape_result",
]
