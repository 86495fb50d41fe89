# credentials.py

from pydantic import BaseModel, SecretStr

from errors import CredentialsError


class EasySlipCredentials(BaseModel):
    """
    Bearer token for the EasySlip API. The token is kept as a SecretStr so it
    never shows up in reprs or log records.
    """

    access_token: SecretStr = SecretStr("")

    @classmethod
    def from_settings(cls, settings) -> "EasySlipCredentials":
        return cls(access_token=SecretStr(settings.easyslip_access_token))

    def get_access_token(self) -> str:
        token = self.access_token.get_secret_value().strip()
        if not token:
            raise CredentialsError("EasySlip access token is not configured")
        return token

    def authorization_header(self) -> dict:
        return {"Authorization": f"Bearer {self.get_access_token()}"}
