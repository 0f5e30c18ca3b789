"""Tests for the HTML email templates."""

from __future__ import annotations

from datetime import datetime, timezone

from paratygo.emails import (
    MISSING,
    NO_FILES,
    format_local,
    registration_subject,
    render_registration,
    render_test_email,
)

NOW = datetime(2026, 10, 16, 15, 30, tzinfo=timezone.utc)


class TestRegistrationEmail:
    def test_fields_rendered(self) -> None:
        html = render_registration({
            "nomeEmpresa": "Trilha do Ouro",
            "categoria": "Passeios",
            "email": "contato@trilha.com.br",
        }, now=NOW)
        assert "Trilha do Ouro" in html
        assert '<span class="badge">Passeios</span>' in html
        assert 'href="mailto:contato@trilha.com.br"' in html
        assert "16/10/2026, 12:30:00" in html

    def test_missing_values_fallback(self) -> None:
        html = render_registration({}, now=NOW)
        assert MISSING in html
        assert NO_FILES in html
        assert "mailto:" not in html

    def test_values_escaped(self) -> None:
        html = render_registration({"descricao": "<script>alert(1)</script>"}, now=NOW)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_subject(self) -> None:
        assert registration_subject({"nomeEmpresa": "Kayak Paraty"}) == "🌴 Novo Cadastro Paraty GO! - Kayak Paraty"
        assert registration_subject({}).endswith(MISSING)


class TestTestEmail:
    def test_render(self) -> None:
        html = render_test_email(now=NOW)
        assert "Teste de Email Bem-Sucedido!" in html
        assert "Email de teste enviado em 16/10/2026, 12:30:00" in html
        assert "max-width: 500px" in html


def test_format_local_uses_sao_paulo_time() -> None:
    assert format_local(datetime(2026, 1, 1, 3, 0, tzinfo=timezone.utc)) == "01/01/2026, 00:00:00"
