"""Tests for template parsing."""

import pytest

from cfn_diff.errors import TemplateError
from cfn_diff.serialization import load_template, parse_template


YAML_TEMPLATE = """
AWSTemplateFormatVersion: 2010-09-09
Resources:
  Queue:
    Type: AWS::SQS::Queue
  Fn:
    Type: AWS::Lambda::Function
    Properties:
      Role: !GetAtt Role.Arn
      Queue: !Ref Queue
      Name: !Sub "${AWS::StackName}-fn"
      Zones: !GetAZs ""
      Size: !If [IsProd, 10, 1]
"""


class TestParseTemplate:
    """Test JSON and YAML parsing."""

    def test_json(self):
        assert parse_template('{"Resources": {}}') == {"Resources": {}}

    def test_yaml_short_forms(self):
        template = parse_template(YAML_TEMPLATE)
        props = template["Resources"]["Fn"]["Properties"]
        assert props["Role"] == {"Fn::GetAtt": ["Role", "Arn"]}
        assert props["Queue"] == {"Ref": "Queue"}
        assert props["Name"] == {"Fn::Sub": "${AWS::StackName}-fn"}
        assert props["Zones"] == {"Fn::GetAZs": ""}
        assert props["Size"] == {"Fn::If": ["IsProd", 10, 1]}

    def test_dates_stay_strings(self):
        assert parse_template(YAML_TEMPLATE)["AWSTemplateFormatVersion"] == "2010-09-09"

    def test_keys_become_strings(self):
        template = parse_template("Mappings:\n  Ports:\n    80: http\n    true: yes\n    web: 443\n")
        assert template["Mappings"]["Ports"] == {"80": "http", "true": True, "web": 443}

    def test_empty(self):
        assert parse_template("") == {}
        assert parse_template("   \n") == {}

    def test_invalid(self):
        with pytest.raises(TemplateError):
            parse_template("Resources: [unclosed")

    def test_not_a_mapping(self):
        with pytest.raises(TemplateError):
            parse_template("- a\n- b\n")


class TestLoadTemplate:
    """Test reading template files."""

    def test_load(self, tmp_path):
        path = tmp_path / "template.yaml"
        path.write_text(YAML_TEMPLATE)
        assert "Fn" in load_template(path)["Resources"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(TemplateError):
            load_template(tmp_path / "missing.json")
