#!/usr/bin/env python3
"""
Check outgoing mail configuration by sending a message to MAIL_USERNAME
(or the address given on the command line).
"""
import sys

from dotenv import load_dotenv

from patakeja import create_app
from patakeja.utils.email_sms import send_email


def check_email_configuration(recipient=None):
    print("Checking Email Configuration")
    print("=" * 50)

    app = create_app()

    with app.app_context():
        for key in ("MAIL_SERVER", "MAIL_PORT", "MAIL_USE_TLS", "MAIL_USERNAME", "MAIL_DEFAULT_SENDER"):
            print(f"{key}: {app.config.get(key, 'Not configured')}")

        mail_configured = bool(app.config.get("MAIL_USERNAME") and app.config.get("MAIL_PASSWORD"))
        print(f"Email Configured: {'Yes' if mail_configured else 'No'}")
        print()

        if not mail_configured:
            print("Email not configured. Set MAIL_USERNAME and MAIL_PASSWORD in .env file")
            print()
            print("Example configuration:")
            print("MAIL_SERVER=smtp.gmail.com")
            print("MAIL_PORT=587")
            print("MAIL_USE_TLS=true")
            print("MAIL_USERNAME=your_email@gmail.com")
            print("MAIL_PASSWORD=your_app_password")
            print("MAIL_DEFAULT_SENDER=Pata Keja <your_email@gmail.com>")
            return False

        to_email = recipient or app.config["MAIL_USERNAME"]
        print(f"Sending test email to {to_email}...")
        result = send_email(
            to_email=to_email,
            subject="Pata Keja Email Test",
            body="This is a test email to verify email functionality is working correctly.",
        )
        print(f"Email send result: {'Success' if result else 'Failed'}")
        return result


if __name__ == "__main__":
    load_dotenv()
    ok = check_email_configuration(sys.argv[1] if len(sys.argv) > 1 else None)
    sys.exit(0 if ok else 1)
