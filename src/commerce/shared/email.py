"""EmailAddress value object for validated, normalised email addresses."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from commerce.domain import commerce


@commerce.value_object
class EmailAddress:
    """A syntactically valid email address.

    Exactly one ``@``, non-empty local and domain parts, a dotted domain, and
    none of the characters that are forbidden outside quoted local parts.
    """

    address = String(required=True, max_length=254)

    @invariant.post
    def verify_email_address(self):
        email = self.address or ""

        def _reject():
            raise ValidationError({"email": [f"Invalid email address: {email!r}"]})

        if any(ch.isspace() for ch in email):
            _reject()

        if email.count("@") != 1:
            _reject()

        local_part, domain_part = email.split("@", 1)

        if not local_part or local_part.startswith(".") or local_part.endswith("."):
            _reject()

        if not domain_part or "." not in domain_part:
            _reject()

        if domain_part.startswith(".") or domain_part.endswith("."):
            _reject()

        for label in domain_part.split("."):
            if not label or label.startswith("-") or label.endswith("-"):
                _reject()

        if ".." in local_part:
            _reject()

        for forbidden in (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\"):
            if forbidden in email:
                _reject()
