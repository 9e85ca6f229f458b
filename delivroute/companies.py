"""Listing of the delivery companies known to the Colis Privé referential."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Mapping

import requests

from delivroute.errors import ExternalApiError

logger = logging.getLogger(__name__)

REFERENTIEL_URL_ENV = "COLIS_PRIVE_REFERENTIEL_URL"
DEFAULT_REFERENTIEL_URL = (
    "https://wsreferentiel-v2.colisprive.com/WS_RefDistributeur/"
    "RefDistributeurConsolideExtranetToExterne.svc"
)
COMPANIES_PATH = "/REST/ClientExtranetlightByTypeClient?TypeClient=PRESTATAIRECOLIS"

_REQUEST_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "fr-FR,fr;q=0.5",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "Origin": "https://gestiontournee.colisprive.com",
    "Pragma": "no-cache",
    "Referer": "https://gestiontournee.colisprive.com/",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
    ),
    "sec-ch-ua": '"Chromium";v="140", "Not=A?Brand";v="24", "Brave";v="140"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"macOS"',
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-site",
    "Sec-GPC": "1",
}

_VALUE_FIELDS = {
    "CLI_ID_CLIENT": int,
    "CLI_LI_CLIENT": str,
    "CLI_LI_CLIENT_COURT": str,
    "CLI_NO_CLIENT_CRM": str,
    "CLI_TYPE": str,
}


@dataclass(frozen=True)
class ColisPriveCompany:
    """A company as exposed to clients: its label and CRM code."""

    libelle: str
    code: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _require(mapping: Any, key: str, kind: type, where: str) -> Any:
    if not isinstance(mapping, Mapping) or key not in mapping:
        raise ValueError(f"missing field `{key}` in {where}")
    value = mapping[key]
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ValueError(f"invalid type for `{key}` in {where}")
    return value


def parse_companies(payload: str | bytes | Mapping[str, Any]) -> list[ColisPriveCompany]:
    """Read the referential's company list; raises ValueError if it is malformed."""
    if isinstance(payload, (str, bytes)):
        payload = json.loads(payload)
    companies = []
    for entry in _require(payload, "LCli", list, "response"):
        _require(entry, "Key", int, "company")
        value = _require(entry, "Value", Mapping, "company")
        for key, kind in _VALUE_FIELDS.items():
            _require(value, key, kind, "company value")
        companies.append(
            ColisPriveCompany(libelle=value["CLI_LI_CLIENT"], code=value["CLI_NO_CLIENT_CRM"])
        )
    return companies


class ColisPriveCompaniesService:
    """Fetches the delivery-provider companies from the Colis Privé referential."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self._session = requests.Session()

    def get_companies(self) -> list[ColisPriveCompany]:
        """Download and parse the company list.

        Raises requests.RequestException on transport failure and ValueError
        when the answer is not the expected document.
        """
        url = f"{self.base_url}{COMPANIES_PATH}"
        logger.info("Requesting companies: %s", url)
        response = self._session.get(url, headers=_REQUEST_HEADERS)
        logger.info("Response received: %s", response.status_code)
        companies = parse_companies(response.json())
        logger.info("Companies mapped: %d", len(companies))
        return companies


def fetch_all_companies(base_url: str | None = None) -> list[ColisPriveCompany]:
    """Fetch every company, reporting any failure as an ExternalApiError.

    Without a base_url, the referential address comes from the environment,
    falling back to the public service.
    """
    if base_url is None:
        base_url = os.environ.get(REFERENTIEL_URL_ENV, DEFAULT_REFERENTIEL_URL)
    try:
        return ColisPriveCompaniesService(base_url).get_companies()
    except (requests.RequestException, ValueError) as exc:
        raise ExternalApiError(f"Error fetching companies: {exc}") from exc