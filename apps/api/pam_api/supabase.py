from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

import httpx
from fastapi import HTTPException

JsonPayload = Union[Dict[str, Any], List[Dict[str, Any]]]


@lru_cache
def _supabase_config() -> tuple[str, str]:
    url = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
    anon_key = os.getenv("SUPABASE_ANON_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not url or not anon_key:
        raise RuntimeError("Missing SUPABASE_URL/SUPABASE_ANON_KEY for API access.")
    return url.rstrip("/"), anon_key


@lru_cache
def _service_role_key() -> str:
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not key:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY for admin access.")
    return key


async def _describe_response(resp: httpx.Response) -> str:
    try:
        return resp.text or "<empty response>"
    except Exception:
        return "<unable to read response>"


async def _raise_supabase_error(
    resp: httpx.Response,
    action: str,
    *,
    object_label: Optional[str] = None,
) -> None:
    detail = await _describe_response(resp)
    label = f" ({object_label})" if object_label else ""
    status = resp.status_code if resp.status_code >= 400 else 500
    raise HTTPException(
        status_code=status,
        detail=f"Supabase {action} failed{label}: status={resp.status_code}, body={detail}",
    )


@dataclass
class SupabaseClient:
    base_url: str
    anon_key: str
    access_token: str

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[JsonPayload] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(timeout=15.0) as client:
            return await client.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(headers),
            )

    async def select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        resp = await self.request("GET", table, params=params)
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "select", object_label=f"table={table}")
        return resp.json()

    async def insert(
        self,
        table: str,
        payload: JsonPayload,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        resp = await self.request(
            "POST",
            table,
            params=params,
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "insert", object_label=f"table={table}")
        return resp.json() if resp.content else []

    async def update(
        self,
        table: str,
        payload: Dict[str, Any],
        params: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        resp = await self.request(
            "PATCH",
            table,
            params=params,
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "update", object_label=f"table={table}")
        return resp.json() if resp.content else []

    async def rpc(self, fn: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        resp = await self.request("POST", f"rpc/{fn}", json=payload)
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "rpc", object_label=f"fn={fn}")
        return resp.json() if resp.content else None

    async def delete(self, table: str, params: Dict[str, Any]) -> None:
        resp = await self.request("DELETE", table, params=params)
        if resp.status_code >= 400:
            await _raise_supabase_error(resp, "delete", object_label=f"table={table}")


@lru_cache
def get_admin_client() -> SupabaseClient:
    base_url, _ = _supabase_config()
    service_role = _service_role_key()
    return SupabaseClient(base_url=base_url, anon_key=service_role, access_token=service_role)
