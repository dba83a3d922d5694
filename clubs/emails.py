from campusconnect.mailer import send_email_on_commit


def send_club_awaiting_approval_email(admin, club, owner):
    subject = f"New Club Awaiting Approval: {club.name}"
    message = f"""Hello Admin,

A new club "{club.name}" has been created by {owner.full_name} ({owner.email}).
Description: {club.description}
Category: {club.category}

Please review and approve or reject the club.

Best regards,
Campus Connect Team"""

    send_email_on_commit(admin.email, subject, message)


def send_join_request_approved_email(user, club):
    subject = f"Join Request Approved for {club.name}"
    message = f"""Dear {user.full_name},

Your request to join the club "{club.name}" has been approved by the club owner.
You are now a member of the club.

Best regards,
Campus Connect Team"""

    send_email_on_commit(user.email, subject, message)


def send_join_request_declined_email(user, club):
    subject = f"Join Request Declined for {club.name}"
    message = f"""Dear {user.full_name},

Your request to join the club "{club.name}" has been declined by the club owner.

Best regards,
Campus Connect Team"""

    send_email_on_commit(user.email, subject, message)


def send_club_approved_email(owner, club_name):
    subject = f"Club Approved: {club_name}"
    message = f"""Dear {owner.full_name},

Your club "{club_name}" has been approved by the admin.
Your club is now active and visible to users.

Best regards,
Campus Connect Team"""

    send_email_on_commit(owner.email, subject, message)


def send_club_rejected_email(owner, club_name):
    subject = f"Club Rejected and Deleted: {club_name}"
    message = f"""Dear {owner.full_name},

Unfortunately, your club "{club_name}" has been rejected by the admin and has been deleted from the platform.

Best regards,
Campus Connect Team"""

    send_email_on_commit(owner.email, subject, message)


def send_club_deleted_email(owner, club_name):
    subject = f"Club Deleted: {club_name}"
    message = f"""Dear {owner.full_name},

Your club "{club_name}" has been deleted by the admin.

Best regards,
Campus Connect Team"""

    send_email_on_commit(owner.email, subject, message)
