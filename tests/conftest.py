"""
Pytest configuration and shared fixtures.
"""

import pytest

from sap_odata.core.session import ODataConfig, ODataCredential


@pytest.fixture
def credential():
    return ODataCredential("user", "pass")


@pytest.fixture
def config():
    return ODataConfig(timeout=5.0, language="EN", max_workers=2)


@pytest.fixture
def sample_entity_set_response():
    """Sample OData v2 collection response."""
    return {
        "d": {
            "results": [
                {"__metadata": {"type": "TestService.Widget"}, "id": "001", "name": "Test 1"},
                {"__metadata": {"type": "TestService.Widget"}, "id": "002", "name": "Test 2"},
            ],
        }
    }


@pytest.fixture
def sample_error_payload():
    """Fully populated SAP Gateway error document."""
    return {
        "error": {
            "code": "E1",
            "message": {"lang": "en", "value": "Forbidden"},
            "innererror": {
                "application": {
                    "component_id": "PM-WOC-MO",
                    "service_namespace": "/SAP/",
                    "service_id": "API_MAINTENANCEORDER_SRV",
                    "service_version": "0001",
                },
                "transactionid": "5E0A0BA2E57E00C0E005D6C2E0D2A4F4",
                "timestamp": "20200914123456.1234560",
                "Error_Resolution": {
                    "SAP_Transaction": "Run transaction /IWFND/ERROR_LOG",
                    "SAP_Note": "See SAP Note 1797736",
                },
                "errordetails": [
                    {
                        "code": "IW/001",
                        "message": "No authorization",
                        "propertyref": "",
                        "severity": "error",
                        "transition": False,
                        "target": "MaintenanceOrder",
                    },
                    {
                        "code": "IW/002",
                        "message": "Check role assignment",
                        "propertyref": "",
                        "severity": "info",
                        "transition": True,
                        "target": "",
                    },
                ],
            },
        }
    }
