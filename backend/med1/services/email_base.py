"""
Shared email layout: header, body wrapper and footer used by every template.
"""

from typing import Optional

from ..core.config import settings


BRAND_NAME = "MED1"
BRAND_COLOR = "#0070df"
FOOTER_TEXT_COLOR = "#999999"


def email_header(title: str, subtitle: Optional[str] = None) -> str:
    """Blue header bar with the product name, title and optional subtitle."""
    subtitle_row = ""
    if subtitle:
        subtitle_row = f"""
                    <tr>
                        <td align="center" style="background-color: {BRAND_COLOR}; padding: 0 30px 24px 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 14px; color: #FFFFFF; line-height: 1.4;">
                                {subtitle}
                            </p>
                        </td>
                    </tr>"""
    return f"""                    <tr>
                        <td align="center" style="background-color: {BRAND_COLOR}; padding: 24px 30px 8px 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 28px; font-weight: bold; color: #FFFFFF; letter-spacing: 2px;">
                                {BRAND_NAME}
                            </p>
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="background-color: {BRAND_COLOR}; padding: 8px 30px 12px 30px;">
                            <h1 style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 22px; font-weight: bold; color: #FFFFFF; line-height: 1.3;">
                                {title}
                            </h1>
                        </td>
                    </tr>{subtitle_row}"""


def email_divider() -> str:
    """Standard horizontal divider."""
    return """                    <tr>
                        <td style="padding: 20px 30px;">
                            <table width="100%" cellpadding="0" cellspacing="0" border="0">
                                <tr><td style="border-top: 1px solid #EEEEEE; font-size: 0; line-height: 0;" height="1">&nbsp;</td></tr>
                            </table>
                        </td>
                    </tr>"""


def email_button(url: str, label: str) -> str:
    """Centered call-to-action button."""
    return f"""                    <tr>
                        <td align="center" style="padding: 10px 30px 0 30px;">
                            <a href="{url}" style="display: inline-block; padding: 14px 32px; background-color: {BRAND_COLOR}; color: #ffffff; text-decoration: none; border-radius: 8px; font-family: Arial, Helvetica, sans-serif; font-size: 16px; font-weight: bold;">{label}</a>
                        </td>
                    </tr>"""


def email_footer() -> str:
    return f"""{email_divider()}
                    <tr>
                        <td align="center" style="padding: 0 30px 24px 30px;">
                            <p style="margin: 0; font-family: Arial, Helvetica, sans-serif; font-size: 11px; color: {FOOTER_TEXT_COLOR}; line-height: 1.4;">
                                {BRAND_NAME} &middot; {settings.frontend_url}
                            </p>
                        </td>
                    </tr>"""


def wrap_in_email_layout(title: str, body_html: str, subtitle: Optional[str] = None) -> str:
    """
    Wrap body rows in the full email document (header + body + footer).

    Args:
        title: Header title text
        body_html: Inner HTML for the body section (table rows)
        subtitle: Optional subtitle under the title

    Returns:
        Complete HTML email string
    """
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title} &mdash; {BRAND_NAME}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #F5F5F7;">
    <table width="100%" cellpadding="0" cellspacing="0" border="0" style="background-color: #F5F5F7;">
        <tr>
            <td align="center" style="padding: 30px 20px;">
                <table width="600" cellpadding="0" cellspacing="0" border="0" style="max-width: 600px; width: 100%; background-color: #FFFFFF; border-radius: 8px; overflow: hidden;">

{email_header(title, subtitle)}

{body_html}

{email_footer()}

                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""
