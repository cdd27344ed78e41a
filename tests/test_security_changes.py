"""Tests for the IAM and security group views of a diff."""

import copy

from cfn_diff.diff import diff_template
from cfn_diff.resource_models import PropertyScrutinyType, ResourceScrutinyType


def _role(statements=None, managed=None):
    properties = {
        "AssumeRolePolicyDocument": {
            "Statement": [{"Effect": "Allow", "Principal": {"Service": "lambda.amazonaws.com"},
                           "Action": "sts:AssumeRole"}],
        },
    }
    if statements is not None:
        properties["Policies"] = [{"PolicyName": "inline", "PolicyDocument": {"Statement": statements}}]
    if managed is not None:
        properties["ManagedPolicyArns"] = managed
    return {"Type": "AWS::IAM::Role", "Properties": properties}


def _template(**resources):
    return {"Resources": resources}


READ = {"Effect": "Allow", "Action": ["s3:GetObject"], "Resource": "*"}
WRITE = {"Effect": "Allow", "Action": "s3:PutObject", "Resource": "*"}
DENY = {"Effect": "Deny", "Action": "s3:DeleteObject", "Resource": "*"}


class TestScrutinizableChanges:
    """Test extraction of security-relevant changes."""

    def test_property_changes(self):
        diff = diff_template(_template(Role=_role([READ])), _template(Role=_role([READ, WRITE])))
        changes = diff.scrutinizable_property_changes([PropertyScrutinyType.INLINE_IDENTITY_POLICIES])
        assert [(c.resource_logical_id, c.property_name) for c in changes] == [("Role", "Policies")]

    def test_type_change_is_delete_and_add(self):
        old = _template(P={"Type": "AWS::SQS::QueuePolicy", "Properties": {"PolicyDocument": {"Statement": [READ]}}})
        new = _template(P={"Type": "AWS::SNS::TopicPolicy", "Properties": {"PolicyDocument": {"Statement": [READ]}}})
        changes = diff_template(old, new).scrutinizable_resource_changes(
            [ResourceScrutinyType.RESOURCE_POLICY_RESOURCE]
        )
        assert [(c.resource_type, c.old_properties is None, c.new_properties is None) for c in changes] == [
            ("AWS::SQS::QueuePolicy", False, True),
            ("AWS::SNS::TopicPolicy", True, False),
        ]


class TestIamChanges:
    """Test IAM statement and managed policy changes."""

    def test_added_statement_broadens(self):
        diff = diff_template(_template(Role=_role([READ])), _template(Role=_role([READ, WRITE])))
        iam = diff.iam_changes
        assert len(iam.statements_added) == 1
        assert iam.statements_added[0].statement["Action"] == ["s3:PutObject"]
        assert iam.statements_removed == []
        assert diff.permissions_broadened

    def test_removed_statement_does_not_broaden(self):
        diff = diff_template(_template(Role=_role([READ, WRITE])), _template(Role=_role([READ])))
        assert diff.iam_changes.has_changes
        assert not diff.permissions_broadened
        assert diff.permissions_any_changes

    def test_added_deny_does_not_broaden(self):
        diff = diff_template(_template(Role=_role([READ])), _template(Role=_role([READ, DENY])))
        assert diff.iam_changes.has_changes
        assert not diff.iam_changes.permissions_broadened

    def test_action_form_normalized(self):
        """A single action and a one-element list are the same statement."""
        single = dict(READ, Action="s3:GetObject")
        diff = diff_template(_template(Role=_role([READ])), _template(Role=_role([single])))
        assert not diff.iam_changes.has_changes

    def test_managed_policy_added(self):
        arn = "arn:aws:iam::aws:policy/AdministratorAccess"
        diff = diff_template(_template(Role=_role(managed=[])), _template(Role=_role(managed=[arn])))
        assert [m.managed_policy_arn for m in diff.iam_changes.managed_policies_added] == [f'"{arn}"']
        assert diff.permissions_broadened

    def test_new_role_counts(self):
        diff = diff_template({}, _template(Role=_role([READ])))
        # Trust policy plus the inline statement
        assert len(diff.iam_changes.statements_added) == 2

    def test_lambda_permission(self):
        permission = {
            "Type": "AWS::Lambda::Permission",
            "Properties": {"Action": "lambda:InvokeFunction", "FunctionName": "fn", "Principal": "*"},
        }
        diff = diff_template({}, _template(Perm=permission))
        assert diff.iam_changes.permissions_broadened

    def test_policy_resource(self):
        policy = {"Type": "AWS::IAM::Policy", "Properties": {"PolicyDocument": {"Statement": READ}}}
        diff = diff_template(_template(Pol=policy), {})
        assert len(diff.iam_changes.statements_removed) == 1
        assert not diff.permissions_broadened


class TestSecurityGroupChanges:
    """Test security group rule changes."""

    def _group(self, ingress):
        return {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {"GroupDescription": "sg", "SecurityGroupIngress": ingress},
        }

    def test_inline_rule_added(self):
        rule = {"IpProtocol": "tcp", "FromPort": 22, "ToPort": 22, "CidrIp": "0.0.0.0/0"}
        diff = diff_template(_template(Sg=self._group([])), _template(Sg=self._group([rule])))
        sg = diff.security_group_changes
        assert len(sg.ingress_added) == 1
        assert sg.ingress_added[0].is_open_to_world
        assert sg.rules_added
        assert diff.permissions_broadened

    def test_inline_rule_removed(self):
        rule = {"IpProtocol": "tcp", "FromPort": 443, "ToPort": 443, "CidrIp": "10.0.0.0/8"}
        diff = diff_template(_template(Sg=self._group([rule])), _template(Sg=self._group([])))
        sg = diff.security_group_changes
        assert len(sg.ingress_removed) == 1
        assert sg.has_changes and not sg.rules_added

    def test_description_only_change_ignored(self):
        rule = {"IpProtocol": "tcp", "FromPort": 443, "ToPort": 443, "CidrIp": "10.0.0.0/8"}
        described = dict(rule, Description="https")
        diff = diff_template(_template(Sg=self._group([rule])), _template(Sg=self._group([described])))
        assert not diff.security_group_changes.has_changes

    def test_egress_rule_resource(self):
        egress = {
            "Type": "AWS::EC2::SecurityGroupEgress",
            "Properties": {"GroupId": {"Ref": "Sg"}, "IpProtocol": "-1", "CidrIp": "0.0.0.0/0"},
        }
        old = _template(Sg=self._group([]))
        new = copy.deepcopy(old)
        new["Resources"]["Out"] = egress
        sg = diff_template(old, new).security_group_changes
        assert len(sg.egress_added) == 1
        assert sg.egress_added[0].group == '{"Ref":"Sg"}'
