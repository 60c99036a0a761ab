from __future__ import annotations
"""
Configuration for the SHL assessment advisor.
"""

import os
from pathlib import Path
from typing import Dict, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Paths
PROJECT_ROOT = Path(__file__).resolve().parents[1]
LOG_DIR = PROJECT_ROOT / "logs"

# Catalog URLs
SITE_ORIGIN = "https://www.shl.com"
CATALOG_BASE_URL = f"{SITE_ORIGIN}/solutions/products/product-catalog/"
LINK_PLACEHOLDER = "URL to assessment"
BRAND_NAME = "shl"

# Recommendation defaults
DEFAULT_NAME = "Unknown Assessment"
DEFAULT_DESCRIPTION = "No description available"
DEFAULT_TYPE = "Not specified"
DEFAULT_DURATION = "Not specified"
DEFAULT_SUITABLE_FOR = "All levels"
DEFAULT_REMOTE_TESTING = "Yes"
DEFAULT_RELEVANCE_SCORE = 70
RELEVANCE_MIN = 0
RELEVANCE_MAX = 100

# Result policy
RESULT_MAX = 10

FALLBACK_APOLOGY = (
    "I found some assessment options but couldn't format them correctly. "
    "Please try again."
)

# Text processing
MAX_INPUT_CHARS = 20_000
LOG_PREVIEW_CHARS = 200

# HTTP hardening (benchmark client)
HTTP_CONNECT_TIMEOUT = 5.0
HTTP_READ_TIMEOUT = float(os.getenv("SHL_ADVISOR_READ_TIMEOUT", "60"))
HTTP_MAX_REDIRECTS = 2
HTTP_USER_AGENT = "shl-assessment-advisor/1.0 (+https://shl.com; benchmark runner)"

ASK_ENDPOINT_URL = os.getenv("SHL_ADVISOR_ASK_URL", "http://localhost:3000/api/ask")
API_HOST = os.getenv("SHL_ADVISOR_HOST", "127.0.0.1")
API_PORT = int(os.getenv("SHL_ADVISOR_PORT", "8000"))
LOG_LEVEL = os.getenv("SHL_ADVISOR_LOG_LEVEL", "INFO")


# Pydantic schemas
class Recommendation(BaseModel):
    """One canonical assessment recommendation, as served to clients."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str
    type: str
    duration: str
    suitable_for: str = Field(alias="suitableFor")
    relevance_score: int = Field(alias="relevanceScore", ge=RELEVANCE_MIN, le=RELEVANCE_MAX)
    remote_testing_available: Literal["Yes", "No"] = Field(alias="remoteTestingAvailable")
    link: str

    def to_payload(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True)


class RecommendationsResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["recommendations"] = "recommendations"
    items: Tuple[Recommendation, ...] = ()

    def to_payload(self) -> Dict[str, object]:
        return {"recommendations": [item.to_payload() for item in self.items]}


class ConversationalResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["conversational"] = "conversational"
    text: str = ""

    def to_payload(self) -> Dict[str, object]:
        return {"conversationalResponse": self.text, "recommendations": []}


NormalizedResult = Union[RecommendationsResult, ConversationalResult]


class BenchmarkCase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    query: str
    expected_assessments: Tuple[str, ...] = Field(alias="expectedAssessments")


class EvaluationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query: str
    expected_assessments: Tuple[str, ...] = Field(alias="expectedAssessments")
    actual_assessments: Tuple[str, ...] = Field(alias="actualAssessments")
    matches: Tuple[str, ...]
    missing: Tuple[str, ...]
    extra: Tuple[str, ...]
    recall: float
    precision_at_k: Tuple[float, ...] = Field(alias="precisionAtK")
    average_precision: float = Field(alias="averagePrecision")


class AggregateMetrics(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mean_recall: float = Field(alias="meanRecall")
    map_at_k: float = Field(alias="mapAtK")
    case_count: int = Field(alias="caseCount")


class HealthResponse(BaseModel):
    status: str


# Benchmark queries used by the evaluation surface
BENCHMARK_CASES: Tuple[BenchmarkCase, ...] = (
    BenchmarkCase(
        id="java-dev",
        query=(
            "I am hiring for Java developers who can also collaborate effectively with my "
            "business teams. Looking for an assessment(s) that can be completed in 40 minutes."
        ),
        expected_assessments=(
            "Core Java (Entry Level) (New)",
            "Java 8 (New)",
            "Core Java (Advanced Level) (New)",
            "Automata - Fix (New)",
            "Agile Software Development",
            "Technology Professional 8.0 Job Focused Assessment",
            "Computer Science (New)",
        ),
    ),
    BenchmarkCase(
        id="sales-role",
        query=(
            "I want to hire new graduates for a sales role in my company, the budget is for "
            "about an hour for each test. Give me some options"
        ),
        expected_assessments=(
            "Entry level Sales 7.1 (International)",
            "Entry Level Sales Sift Out 7.1",
            "Entry Level Sales Solution",
            "Sales Representative Solution",
            "Sales Support Specialist Solution",
            "Technical Sales Associate Solution",
            "SVAR - Spoken English (Indian Accent) (New)",
            "Sales & Service Phone Solution",
            "Sales & Service Phone Simulation",
            "English Comprehension (New)",
        ),
    ),
    BenchmarkCase(
        id="coo-china",
        query=(
            "I am looking for a COO for my company in China and I want to see if they are "
            "culturally a right fit for our company. Suggest me an assessment that they can "
            "complete in about an hour"
        ),
        expected_assessments=(
            "Motivation Questionnaire MQM5",
            "Global Skills Assessment",
            "Graduate 8.0 Job Focused Assessment",
        ),
    ),
    BenchmarkCase(
        id="content-writer",
        query="Content Writer required, expert in English and SEO.",
        expected_assessments=(
            "Drupal (New)",
            "Search Engine Optimization (New)",
            "Administrative Professional - Short Form",
            "Entry Level Sales Sift Out 7.1",
            "General Entry Level – Data Entry 7.0 Solution",
        ),
    ),
    BenchmarkCase(
        id="bank-admin",
        query=(
            "ICICI Bank Assistant Admin, Experience required 0-2 years, test should be "
            "30-40 mins long"
        ),
        expected_assessments=(
            "Administrative Professional - Short Form",
            "Verify - Numerical Ability",
            "Financial Professional - Short Form",
            "Bank Administrative Assistant - Short Form",
            "General Entry Level – Data Entry 7.0 Solution",
            "Basic Computer Literacy (Windows 10) (New)",
        ),
    ),
)

BENCHMARK_LABELS: Dict[str, str] = {
    "java-dev": "Java Developer",
    "sales-role": "Sales Role",
    "coo-china": "COO (China)",
    "content-writer": "Content Writer",
    "bank-admin": "Bank Admin",
}
