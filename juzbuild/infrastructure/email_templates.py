"""Handlebars sources for the transactional emails."""
from __future__ import annotations

_STYLE = """
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; margin: 0; padding: 0; background-color: #f5f5f5; }
        .container { max-width: 600px; margin: 0 auto; background: white; border-radius: 12px; overflow: hidden; }
        .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; text-align: center; padding: 40px 20px; }
        .header h1 { margin: 0; font-size: 28px; font-weight: 700; }
        .content { padding: 40px 30px; }
        .info { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; padding: 20px; margin: 20px 0; }
        .label { font-weight: 600; color: #374151; }
        .cta-button { display: inline-block; background: #667eea; color: white; padding: 15px 30px; text-decoration: none; border-radius: 8px; font-weight: 600; }
        .footer { background: #f8fafc; text-align: center; padding: 20px; color: #6b7280; font-size: 14px; }
    </style>"""


def _page(title: str, heading: str, body: str, footer: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>{_STYLE}
</head>
<body>
    <div class="container">
        <div class="header"><h1>{heading}</h1></div>
        <div class="content">
{body}
        </div>
        <div class="footer">
{footer}
        </div>
    </div>
</body>
</html>
"""


_COPYRIGHT = "            <p>&copy; {{currentYear}} Juzbuild. All rights reserved.</p>"

WAITLIST_WELCOME = _page(
    "Welcome to the Juzbuild Waitlist",
    "You're on the list!",
    """            <p>Hi there,</p>
            <p>Thanks for joining the Juzbuild waitlist with <strong>{{email}}</strong>.
            We'll let you know as soon as your spot opens up.</p>
            <p><a class="cta-button" href="{{appUrl}}">Visit Juzbuild</a></p>""",
    _COPYRIGHT + """
            <p><a href="{{unsubscribeUrl}}">Unsubscribe</a></p>""",
)

WAITLIST_NOTIFICATION = _page(
    "New Waitlist Signup",
    "New waitlist signup",
    """            <div class="info">
                <p><span class="label">Email:</span> {{userEmail}}</p>
                <p><span class="label">Signed up at:</span> {{signupTime}}</p>
            </div>""",
    _COPYRIGHT,
)

PASSWORD_RESET = _page(
    "Reset Your Password",
    "Reset your password",
    """            <p>We received a request to reset the password for <strong>{{email}}</strong>.</p>
            <p><a class="cta-button" href="{{resetUrl}}">Reset Password</a></p>
            <p>If you did not request this, you can safely ignore this email. The link expires in one hour.</p>""",
    _COPYRIGHT,
)

CONTACT_CONFIRMATION = _page(
    "We Received Your Message",
    "Thanks for reaching out, {{name}}!",
    """            <p>We've received your message and will get back to you shortly. Here is a copy for your records:</p>
            <div class="info">
                <p><span class="label">Subject:</span> {{subject}}</p>
                <p><span class="label">Email:</span> {{email}}</p>
                {{#if phone}}<p><span class="label">Phone:</span> {{phone}}</p>{{/if}}
                {{#if company}}<p><span class="label">Company:</span> {{company}}</p>{{/if}}
                <p><span class="label">Message:</span></p>
                <p>{{message}}</p>
            </div>
            <p><a class="cta-button" href="{{baseUrl}}">Back to Juzbuild</a></p>""",
    _COPYRIGHT,
)

CONTACT_NOTIFICATION = _page(
    "New Contact Form Submission",
    "New contact form submission",
    """            {{#if isPriority}}<p><strong>Priority inquiry</strong></p>{{/if}}
            <div class="info">
                <p><span class="label">Name:</span> {{name}}</p>
                <p><span class="label">Email:</span> {{email}}</p>
                {{#if phone}}<p><span class="label">Phone:</span> {{phone}}</p>{{/if}}
                {{#if company}}<p><span class="label">Company:</span> {{company}}</p>{{/if}}
                <p><span class="label">Subject:</span> {{subject}}</p>
                <p><span class="label">Submitted:</span> {{submittedAt}}</p>
            </div>
            <p>{{message}}</p>""",
    "            <p>Sent from the Juzbuild contact form.</p>",
)

WEBSITE_CREATION = _page(
    "Your Website is Ready!",
    "Your website is ready!",
    """            <p>Congratulations! <strong>{{companyName}}</strong> is now live.</p>
            <div class="info">
                <p><span class="label">Website:</span> {{websiteName}}</p>
                <p><span class="label">Domain:</span> {{domain}}</p>
                <p><span class="label">Theme:</span> {{theme}}</p>
                <p><span class="label">Layout:</span> {{layoutStyle}}</p>
                <p><span class="label">Created:</span> {{createdAt}}</p>
            </div>
            <p>
                <a class="cta-button" href="{{websiteUrl}}">View Your Website</a>
                <a class="cta-button" href="{{dashboardUrl}}">Open Dashboard</a>
            </p>
            <p>DNS changes can take a few minutes to propagate.</p>""",
    _COPYRIGHT + """
            <p>This email was sent to {{userEmail}}. <a href="{{baseUrl}}">Juzbuild</a></p>""",
)

EMAIL_TEMPLATES: dict[str, str] = {
    "waitlist-welcome": WAITLIST_WELCOME,
    "waitlist-notification": WAITLIST_NOTIFICATION,
    "password-reset": PASSWORD_RESET,
    "contact-confirmation": CONTACT_CONFIRMATION,
    "contact-notification": CONTACT_NOTIFICATION,
    "website-creation": WEBSITE_CREATION,
}

__all__ = ["EMAIL_TEMPLATES"]
