from drf_spectacular.extensions import OpenApiAuthenticationExtension

from carelog.iam.auth import access_cookie_name


class CookieOrHeaderJWTAuthenticationScheme(OpenApiAuthenticationExtension):
    target_class = "carelog.iam.auth.CookieOrHeaderJWTAuthentication"
    name = "BearerOrCookieJWT"

    def get_security_definition(self, auto_schema):
        # Swagger "Authorize" only speaks bearer; the cookie is noted in the description.
        return {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": f"Access token in `Authorization: Bearer` or the `{access_cookie_name()}` cookie.",
        }
