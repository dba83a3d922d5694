from django.conf import settings

from campusconnect.mailer import send_email


def send_welcome_email(user, otp):
    subject = "Welcome to Campus Connect - Verify Your Account"
    message = f"""Dear {user.full_name},

Welcome to Campus Connect! Your account has been successfully created.
Account Details:
- Name: {user.full_name}
- Email: {user.email}
- Faculty: {user.faculty}
- Phone: {user.phone}

Your OTP for account verification is: {otp}
This OTP will expire in {settings.OTP_EXPIRY_MINUTES} minutes. Please verify your account to start using the platform.

Best regards,
Campus Connect Team"""

    return send_email(user.email, subject, message)


def send_new_otp_email(user, otp):
    subject = "New OTP for Campus Connect Account Verification"
    message = f"""Dear {user.full_name},

Your new OTP for verifying your Campus Connect account is: {otp}
This OTP will expire in {settings.OTP_EXPIRY_MINUTES} minutes.

Best regards,
Campus Connect Team"""

    return send_email(user.email, subject, message)
