from __future__ import annotations

from flask import Flask, g, request

from ..common.auth import admin_required, login_required
from ..common.http import domain_error, json_body, page_response, query_int, server_error, success
from ..common.validators import optional_enum, require_month_year
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import PayrollStatus
from ..core.exceptions import DomainError
from ..container import Container
from .model import PayrollFilter, payroll_to_dict


def _filters_from_query(*, employee_id=None) -> PayrollFilter:
    args = request.args
    return PayrollFilter(
        employee_id=employee_id,
        month=query_int("month"),
        year=query_int("year"),
        status=optional_enum(PayrollStatus, args.get("status"), "status"),
        department=(args.get("department") or "").strip() or None,
        search=(args.get("search") or "").strip() or None,
    )


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/payroll", methods=["POST"], endpoint="create_payroll")
    @admin_required
    def create_payroll():
        user = g.current_user
        try:
            payroll = service.create_payroll(current_role=user.role, actor_id=user.employee_id, payload=json_body())
            return success("Payroll created successfully", payroll_to_dict(payroll), 201)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to create payroll")

    @app.route("/payroll/calculate", methods=["POST"], endpoint="calculate_payroll")
    @admin_required
    def calculate_payroll():
        user = g.current_user
        try:
            data = service.preview(current_role=user.role, actor_id=user.employee_id, payload=json_body())
            return success("Payroll calculated", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to calculate payroll")

    @app.route("/payroll/generate-monthly", methods=["POST"], endpoint="generate_monthly_payroll")
    @admin_required
    def generate_monthly_payroll():
        try:
            result = service.generate_monthly_batch(actor_id=g.current_user.employee_id)
            return success(
                f"Generated {result['created']} payrolls ({result['skipped']} skipped, {result['failed']} failed)",
                result,
            )
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Monthly payroll generation failed")

    @app.route("/payroll", methods=["GET"], endpoint="list_payrolls")
    @admin_required
    def list_payrolls():
        try:
            page = max(query_int("page", 1), 1)
            limit = max(query_int("limit", DEFAULT_PAGE_SIZE), 1)
            rows, total, summary = service.list_payrolls(
                current_role=g.current_user.role, filters=_filters_from_query(), page=page, limit=limit
            )
            return page_response(
                [payroll_to_dict(p) for p in rows], total=total, page=page, limit=limit, summary=summary
            )
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load payrolls")

    def _employee_payrolls(employee_id: int):
        user = g.current_user
        try:
            data = service.list_for_employee(
                current_role=user.role, actor_id=user.employee_id, employee_id=employee_id, year=query_int("year")
            )
            records = [payroll_to_dict(p) for p in data["records"]]
            return success("Employee payrolls", records, count=len(records), summary=data["summary"])
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load employee payrolls")

    @app.route("/payroll/mine", methods=["GET"], endpoint="my_payrolls")
    @login_required
    def my_payrolls():
        return _employee_payrolls(g.current_user.employee_id)

    @app.route("/payroll/employee/<int:employee_id>", methods=["GET"], endpoint="employee_payrolls")
    @login_required
    def employee_payrolls(employee_id: int):
        return _employee_payrolls(employee_id)

    @app.route("/payroll/stats", methods=["GET"], endpoint="payroll_stats")
    @admin_required
    def payroll_stats():
        try:
            data = service.stats(current_role=g.current_user.role, month=query_int("month"), year=query_int("year"))
            return success("Payroll statistics", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load payroll statistics")

    @app.route("/payroll/export", methods=["GET"], endpoint="export_payrolls")
    @admin_required
    def export_payrolls():
        try:
            month, year = require_month_year(request.args.get("month"), request.args.get("year"))
            filters = _filters_from_query()
            rows = service.export(
                current_role=g.current_user.role,
                filters=PayrollFilter(month=month, year=year, status=filters.status, department=filters.department),
            )
            return success("Payroll export", rows, count=len(rows))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to export payrolls")

    @app.route("/payroll/<int:payroll_id>", methods=["GET"], endpoint="get_payroll")
    @login_required
    def get_payroll(payroll_id: int):
        user = g.current_user
        try:
            payroll = service.get(current_role=user.role, actor_id=user.employee_id, payroll_id=payroll_id)
            return success("Payroll found", payroll_to_dict(payroll))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load payroll")

    @app.route("/payroll/<int:payroll_id>/status", methods=["PATCH"], endpoint="update_payroll_status")
    @admin_required
    def update_payroll_status(payroll_id: int):
        user = g.current_user
        try:
            payroll = service.update_status(
                current_role=user.role, actor_id=user.employee_id, payroll_id=payroll_id, payload=json_body()
            )
            return success("Payroll status updated", payroll_to_dict(payroll))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to update payroll status")

    @app.route("/payroll/<int:payroll_id>/action", methods=["PATCH"], endpoint="payroll_employee_action")
    @login_required
    def payroll_employee_action(payroll_id: int):
        body = json_body()
        try:
            payroll = service.employee_action(
                actor_id=g.current_user.employee_id,
                payroll_id=payroll_id,
                action=body.get("action"),
                reason=body.get("reason"),
                ip=request.remote_addr,
                user_agent=request.headers.get("User-Agent"),
            )
            message = "Payroll accepted" if payroll.employee_approved else "Payroll rejected"
            return success(message, payroll_to_dict(payroll))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to record payroll action")

    @app.route("/payroll/<int:payroll_id>/manual-inputs", methods=["PATCH"], endpoint="update_payroll_manual_inputs")
    @admin_required
    def update_payroll_manual_inputs(payroll_id: int):
        user = g.current_user
        try:
            payroll = service.update_manual_inputs(
                current_role=user.role, actor_id=user.employee_id, payroll_id=payroll_id, payload=json_body()
            )
            return success("Manual inputs updated", payroll_to_dict(payroll))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to update manual inputs")

    @app.route("/payroll/<int:payroll_id>/recalculate", methods=["POST"], endpoint="recalculate_payroll")
    @admin_required
    def recalculate_payroll(payroll_id: int):
        user = g.current_user
        try:
            payroll = service.recalculate(current_role=user.role, actor_id=user.employee_id, payroll_id=payroll_id)
            return success("Payroll recalculated", payroll_to_dict(payroll))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to recalculate payroll")

    @app.route("/payroll/<int:payroll_id>", methods=["DELETE"], endpoint="delete_payroll")
    @admin_required
    def delete_payroll(payroll_id: int):
        try:
            service.delete(current_role=g.current_user.role, payroll_id=payroll_id)
            return success("Payroll deleted successfully")
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to delete payroll")
