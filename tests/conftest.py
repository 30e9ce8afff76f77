"""
Shared fixtures: campaign builders and an httpx mock transport router.
"""
from datetime import date
from typing import Callable, Dict, List

import httpx
import pytest

from config.settings import CacheSettings, GeneralSettings, ResearchSettings, SearchSettings, Settings
from core import CampaignContext


def make_campaign(brief: dict = None, **fields) -> CampaignContext:
    payload = {"id": fields.pop("id", "cmp-1"), "briefSpec": brief or {}}
    payload.update(fields)
    return CampaignContext.model_validate(payload)


@pytest.fixture
def campaign_factory() -> Callable[..., CampaignContext]:
    return make_campaign


@pytest.fixture
def appliance_cashback() -> CampaignContext:
    """$10 cashback on appliances: well below the $50 / 4% floors."""
    return make_campaign(
        {
            "brand": "Westinghouse",
            "typeOfPromotion": "CASHBACK",
            "cashback": {"amount": 10},
            "retailers": ["Harvey Norman", "The Good Guys"],
            "hook": "Cook more, save more",
            "mechanicOneLiner": "Buy a participating oven, claim $10 back online",
        },
        id="cmp-appliance",
        title="Westinghouse Winter Cashback",
        category="Appliances",
        market="AU",
        startDate=date(2025, 7, 1).isoformat(),
    )


@pytest.fixture
def prize_campaign() -> CampaignContext:
    return make_campaign(
        {
            "brand": "Crunchos",
            "typeOfPromotion": "PRIZE",
            "heroPrize": "Family car",
            "heroPrizeCount": 1,
            "totalWinners": 50,
            "expectedBuyers": 10000,
            "retailers": ["Coles", "Woolworths"],
            "mechanicOneLiner": "Buy any pack, enter online",
        },
        id="cmp-prize",
        category="Snacks",
        market="AU",
    )


def make_settings(**search) -> Settings:
    # Never pick up real keys from the environment.
    search.setdefault("serper_api_key", None)
    search.setdefault("brave_api_key", None)
    return Settings(
        search=SearchSettings(**search),
        research=ResearchSettings(fetch_timeouts=(1.0,), retry_delay=0.0, deep_max_urls=10, max_urls=10),
        cache=CacheSettings(provider="memory"),
        general=GeneralSettings(use_rich=False),
    )


class Router:
    """Dispatch MockTransport requests by host and record every call."""

    def __init__(self):
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: List[httpx.Request] = []

    def add(self, host: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[host] = handler

    def hosts(self) -> List[str]:
        return [request.url.host for request in self.calls]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404, text="not found")
        return handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def wikipedia_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/w/api.php":
        term = request.url.params.get("search", "")
        return httpx.Response(200, json=[term, [term.title()], [""], [""]])
    title = request.url.path.rsplit("/", 1)[-1]
    return httpx.Response(200, json={"title": title, "extract": f"{title} is a well-known name in Australia."})


@pytest.fixture
def router() -> Router:
    return Router()


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings


@pytest.fixture
def wiki_router(router: Router) -> Router:
    router.add("en.wikipedia.org", wikipedia_handler)
    return router
