from __future__ import annotations

from flask import Flask, g

from ..common.auth import admin_required, login_required
from ..common.http import domain_error, json_body, server_error, success
from ..core.exceptions import DomainError
from ..container import Container
from .model import rule_to_dict


def register(app: Flask, container: Container) -> None:
    service = container.salary_rule_service

    @app.route("/salary-rules", methods=["GET"], endpoint="list_salary_rules")
    @admin_required
    def list_salary_rules():
        user = g.current_user
        try:
            rules = [rule_to_dict(r) for r in service.list_rules(current_role=user.role, actor_id=user.employee_id)]
            return success("Salary rules", rules, count=len(rules))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load salary rules")

    @app.route("/salary-rules/active", methods=["GET"], endpoint="active_salary_rules")
    @login_required
    def active_salary_rules():
        try:
            rules = service.active_rules_summary()
            return success("Active salary rules", rules, count=len(rules))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load active salary rules")

    @app.route("/salary-rules/<int:rule_id>", methods=["GET"], endpoint="get_salary_rule")
    @admin_required
    def get_salary_rule(rule_id: int):
        try:
            rule = service.get_rule(current_role=g.current_user.role, rule_id=rule_id)
            return success("Salary rule found", rule_to_dict(rule))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load salary rule")

    @app.route("/salary-rules", methods=["POST"], endpoint="create_salary_rule")
    @admin_required
    def create_salary_rule():
        user = g.current_user
        try:
            rule = service.create_rule(current_role=user.role, actor_id=user.employee_id, payload=json_body())
            return success("Salary rule created successfully", rule_to_dict(rule), 201)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to create salary rule")

    @app.route("/salary-rules/<int:rule_id>", methods=["PATCH"], endpoint="update_salary_rule")
    @admin_required
    def update_salary_rule(rule_id: int):
        user = g.current_user
        try:
            rule = service.update_rule(
                current_role=user.role, actor_id=user.employee_id, rule_id=rule_id, payload=json_body()
            )
            return success("Salary rule updated successfully", rule_to_dict(rule))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to update salary rule")

    @app.route("/salary-rules/<int:rule_id>", methods=["DELETE"], endpoint="delete_salary_rule")
    @admin_required
    def delete_salary_rule(rule_id: int):
        try:
            service.delete_rule(current_role=g.current_user.role, rule_id=rule_id)
            return success("Salary rule deleted successfully")
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to delete salary rule")
