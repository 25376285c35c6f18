"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import Mock


@pytest.fixture
def mock_session():
    """Create a mock ODataSession."""
    session = Mock()
    session.cfg = Mock()
    session.base = "https://test.example.com/odata/Service.svc/"
    session.timeout = 60.0
    session.verify = True
    session.url_for = Mock(
        side_effect=lambda path, query_options=None: (
            session.base + path + (f"?{query_options}" if query_options else "")
        )
    )
    return session


@pytest.fixture
def sample_v2_response():
    """Sample OData v2 response."""
    return {
        "d": {
            "results": [
                {"ID": "001", "Name": "Test 1", "Status": "ACTIVE"},
                {"ID": "002", "Name": "Test 2", "Status": "INACTIVE"},
            ],
        }
    }


@pytest.fixture
def sample_v4_response():
    """Sample OData v4 response."""
    return {
        "@odata.context": "https://test.example.com/odata/$metadata#Products",
        "value": [
            {"ID": 1, "Name": "Bread"},
            {"ID": 2, "Name": "Milk"},
        ],
    }


@pytest.fixture
def sample_metadata_xml():
    """Sample OData v2 $metadata XML."""
    return """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="1.0" xmlns:edmx="http://schemas.microsoft.com/ado/2007/06/edmx">
  <edmx:DataServices m:DataServiceVersion="2.0" xmlns:m="http://schemas.microsoft.com/ado/2007/08/dataservices/metadata">
    <Schema Namespace="ODataDemo" xmlns="http://schemas.microsoft.com/ado/2008/09/edm">
      <EntityType Name="Product">
        <Key>
          <PropertyRef Name="ID"/>
        </Key>
        <Property Name="ID" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" Nullable="true"/>
        <Property Name="Code" Type="Edm.String" Nullable="FALSE" MaxLength="256"/>
        <Property Name="Price" Type="Edm.Decimal" Nullable="false" MaxLength="abc"/>
        <Property Name="Description" Type="Edm.String"/>
        <NavigationProperty Name="Category" Relationship="ODataDemo.Product_Category_Category_Products" FromRole="Product_Category" ToRole="Category_Products"/>
      </EntityType>
      <EntityType Name="Category">
        <Key>
          <PropertyRef Name="ID"/>
        </Key>
        <Property Name="ID" Type="Edm.Int32" Nullable="false"/>
        <Property Name="Name" Type="Edm.String" Nullable="true"/>
      </EntityType>
      <EntityContainer Name="DemoService" m:IsDefaultEntityContainer="true">
        <EntitySet Name="Products" EntityType="ODataDemo.Product"/>
        <EntitySet Name="Categories" EntityType="Category"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>"""


@pytest.fixture
def sample_v4_metadata_xml():
    """Sample OData v4 $metadata XML."""
    return """<?xml version="1.0" encoding="utf-8"?>
<edmx:Edmx Version="4.0" xmlns:edmx="http://docs.oasis-open.org/odata/ns/edmx">
  <edmx:DataServices>
    <Schema Namespace="Trippin" xmlns="http://docs.oasis-open.org/odata/ns/edm">
      <EntityType Name="Person">
        <Key>
          <PropertyRef Name="UserName"/>
        </Key>
        <Property Name="UserName" Type="Edm.String" Nullable="false"/>
        <Property Name="FirstName" Type="Edm.String" Nullable="false" MaxLength="max"/>
        <Property Name="LastName" Type="Edm.String" MaxLength="26"/>
      </EntityType>
      <EntityContainer Name="Container">
        <EntitySet Name="People" EntityType="Trippin.Person"/>
      </EntityContainer>
    </Schema>
  </edmx:DataServices>
</edmx:Edmx>"""
