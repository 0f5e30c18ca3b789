"""HTML email bodies rendered from the Jinja2 templates in ``templates/``."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_DIR = Path(__file__).parent / "templates"
LOCAL_TZ = ZoneInfo("America/Sao_Paulo")

MISSING = "Não informado"
NO_FILES = "Nenhum arquivo enviado"

# (form key, label) in display order
REGISTRATION_FIELDS: list[tuple[str, str]] = [
    ("nomeEmpresa", "Nome da Empresa/Serviço"),
    ("categoria", "Categoria"),
    ("descricao", "Descrição do Serviço"),
    ("nomeResponsavel", "Responsável"),
    ("email", "Email"),
    ("whatsapp", "WhatsApp"),
    ("redesSociais", "Instagram / Site"),
    ("endereco", "Endereço / Local"),
    ("capacidade", "Capacidade / Tipo de Serviço"),
    ("diferencial", "Diferencial"),
    ("arquivosNomes", "Arquivos Anexados"),
]


def build_jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


_env = build_jinja_env()


def format_local(now: datetime | None = None) -> str:
    """pt-BR style timestamp in São Paulo time, e.g. ``16/10/2026, 14:30:00``."""
    now = now or datetime.now(LOCAL_TZ)
    return now.astimezone(LOCAL_TZ).strftime("%d/%m/%Y, %H:%M:%S")


def registration_subject(data: dict[str, Any]) -> str:
    return f"🌴 Novo Cadastro Paraty GO! - {data.get('nomeEmpresa') or MISSING}"


def render_registration(data: dict[str, Any], now: datetime | None = None) -> str:
    fields = []
    for key, label in REGISTRATION_FIELDS:
        value = data.get(key)
        fallback = NO_FILES if key == "arquivosNomes" else MISSING
        fields.append({"key": key, "label": label, "value": value or fallback, "present": bool(value)})
    return _env.get_template("registration.html").render(fields=fields, sent_at=format_local(now))


def render_test_email(now: datetime | None = None) -> str:
    return _env.get_template("test_email.html").render(width=500, sent_at=format_local(now))
