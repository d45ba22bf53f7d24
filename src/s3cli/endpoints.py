"""
Static lookup data for endpoint and region resolution.

The JSON configuration cannot change these values.
"""

from typing import Dict

# Well-known AWS S3 hostnames and the region each one serves.
# A host listed here implies its region when the config sets no `region`.
ENDPOINTS_TO_REGIONS: Dict[str, str] = {
    "s3.amazonaws.com": "us-east-1",
    "s3-external-1.amazonaws.com": "us-east-1",
    "s3-us-west-1.amazonaws.com": "us-west-1",
    "s3-us-west-2.amazonaws.com": "us-west-2",
    "s3-eu-west-1.amazonaws.com": "eu-west-1",
    "s3.eu-central-1.amazonaws.com": "eu-central-1",
    "s3-eu-central-1.amazonaws.com": "eu-central-1",
    "s3-ap-southeast-1.amazonaws.com": "ap-southeast-1",
    "s3-ap-southeast-2.amazonaws.com": "ap-southeast-2",
    "s3-ap-northeast-1.amazonaws.com": "ap-northeast-1",
    "s3.ap-northeast-2.amazonaws.com": "ap-northeast-2",
    "s3-ap-northeast-2.amazonaws.com": "ap-northeast-2",
    "s3-sa-east-1.amazonaws.com": "sa-east-1",
}

# Sentinel for "no region": S3-compatible (non-AWS) endpoints, or no host at all.
# The client factory leaves `region_name` unset for this value.
NO_REGION: str = ""

# Conventional ports, omitted from the endpoint URL.
DEFAULT_PORTS: Dict[str, int] = {"https": 443, "http": 80}
