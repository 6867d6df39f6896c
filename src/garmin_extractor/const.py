"""Constants for garmin_extractor."""

# Hosts
CONNECT_HOST = "https://connect.garmin.com"
CONNECT_URL = f"{CONNECT_HOST}/modern"
CONNECT_PROXY_PREFIX = "/modern/proxy"
CONNECT_PROXY_URL = f"{CONNECT_HOST}{CONNECT_PROXY_PREFIX}"
CONNECT_API_URL = "https://connectapi.garmin.com"

# SSO
SSO_URL = "https://sso.garmin.com/sso"
SSO_SIGNIN_URL = f"{SSO_URL}/signin"
SSO_REFERER = "https://sso.garmin.com/"
SSO_TICKET_PATTERN = r"""response_url\s*=\s*['"]([^'"]+ticket=([^'"]+))['"]"""
SSO_INVALID_CREDENTIALS_MARKER = "Invalid user name or password"

# Query parameters describing the embedded sign-in widget
SSO_PARAMS = {
    "service": CONNECT_URL,
    "webhost": CONNECT_HOST,
    "source": CONNECT_URL,
    "redirectAfterAccountLoginUrl": CONNECT_URL,
    "redirectAfterAccountCreationUrl": CONNECT_URL,
    "gauthHost": SSO_URL,
    "locale": "en_US",
    "id": "gauth-widget",
    "clientId": "GarminConnect",
    "rememberMeShown": "true",
    "rememberMeChecked": "false",
    "createAccountShown": "true",
    "openCreateAccount": "false",
    "displayNameShown": "false",
    "consumeServiceTicket": "false",
    "initialFocus": "true",
    "embedWidget": "false",
    "generateExtraServiceTicket": "true",
    "generateTwoFactorTicket": "false",
    "generateNoServiceTicket": "false",
    "globalOptInShown": "true",
    "globalOptInChecked": "false",
    "mobile": "false",
    "connectLegalTerms": "true",
    "locationPromptShown": "true",
    "showPassword": "true",
}

# User agents / headers
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
)
MOBILE_USER_AGENT = "GCM-iOS-5.7.2.1"

BEARER_HEADERS = {
    "User-Agent": MOBILE_USER_AGENT,
    "Accept": "application/json",
}
PROXY_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "di-backend": "connectapi.garmin.com",
    "NK": "NT",
    "X-Requested-With": "XMLHttpRequest",
    "Accept": "application/json, text/plain, */*",
}
TICKET_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": SSO_REFERER,
}

# Cookies
SESSION_COOKIE_NAMES = ("SESSION", "session")
SSO_COOKIE_PREFIX = "GARMIN-SSO"
SSO_COOKIE_DOMAIN = ".garmin.com"
CONNECT_COOKIE_DOMAIN = ".connect.garmin.com"

# Bearer token / refresh bridge
JWT_PREFIX = "eyJ"
GARTH_BUNDLE_MARKER = "Garth Bundle:"
OAUTH2_TOKEN_MARKER = "OAuth2 Access Token:"
CREDENTIAL_ENV_KEYS = {
    "username": ("GARMIN_EMAIL", "EMAIL"),
    "password": ("GARMIN_PASSWORD", "PASSWORD"),
}

# Identity endpoints
SOCIAL_PROFILE_PATH = "/userprofile-service/socialProfile"
USER_SETTINGS_PATH = "/userprofile-service/userprofile/user-settings"

# Wellness endpoints
BODY_BATTERY_PATH = "/wellness-service/wellness/bodyBattery/reports/daily"
DAILY_SUMMARY_PATH = "/usersummary-service/usersummary/daily/{display_name}"
WEIGHT_RANGE_PATH = "/weight-service/weight/dateRange"
SLEEP_PATH = "/wellness-service/wellness/dailySleepData/{display_name}"
RESTING_HR_STATS_PATH = "/userstats-service/wellness/daily/{display_name}"
RESTING_HR_METRIC_ID = 60
HRV_PATH = "/hrv-service/hrv/{date}"
STRESS_PATH = "/wellness-service/wellness/dailyStress/{date}"
HEART_RATE_PATH = "/wellness-service/wellness/dailyHeartRate/{display_name}"

REQUEST_TIMEOUT_S = 30
