from __future__ import annotations

from flask import Flask, g, request

from ..common.auth import admin_required, login_required
from ..common.http import domain_error, json_body, page_response, query_int, server_error, success
from ..common.validators import optional_date, optional_enum
from ..core.constants import DEFAULT_PAGE_SIZE
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import DomainError
from ..container import Container
from .model import LeaveFilter, leave_to_dict


def _filters_from_query() -> LeaveFilter:
    args = request.args
    return LeaveFilter(
        employee_code=(args.get("employeeId") or "").strip() or None,
        status=optional_enum(LeaveStatus, args.get("status"), "status"),
        leave_type=optional_enum(LeaveType, args.get("leaveType") or args.get("type"), "leaveType"),
        department=(args.get("department") or "").strip() or None,
        start_date=optional_date(args.get("startDate"), "startDate"),
        end_date=optional_date(args.get("endDate"), "endDate"),
        search=(args.get("search") or "").strip() or None,
    )


def _paging() -> tuple[int, int]:
    page = max(query_int("page", 1), 1)
    limit = max(query_int("limit", DEFAULT_PAGE_SIZE), 1)
    return page, limit


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/leaves", methods=["POST"], endpoint="create_leave")
    @login_required
    def create_leave():
        user = g.current_user
        try:
            leave = service.request_leave(current_role=user.role, actor_id=user.employee_id, payload=json_body())
            return success("Leave request submitted successfully", leave_to_dict(leave), 201)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to submit leave request")

    @app.route("/leaves/mine", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        try:
            page, limit = _paging()
            rows, total = service.list_my_leaves(
                actor_id=g.current_user.employee_id, filters=_filters_from_query(), page=page, limit=limit
            )
            return page_response([leave_to_dict(l) for l in rows], total=total, page=page, limit=limit)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave requests")

    @app.route("/leaves", methods=["GET"], endpoint="list_leaves")
    @admin_required
    def list_leaves():
        try:
            page, limit = _paging()
            rows, total = service.list_leaves(
                current_role=g.current_user.role, filters=_filters_from_query(), page=page, limit=limit
            )
            return page_response([leave_to_dict(l) for l in rows], total=total, page=page, limit=limit)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave requests")

    @app.route("/leaves/<int:leave_id>", methods=["GET"], endpoint="get_leave")
    @login_required
    def get_leave(leave_id: int):
        user = g.current_user
        try:
            leave = service.get_leave(current_role=user.role, actor_id=user.employee_id, leave_id=leave_id)
            return success("Leave request found", leave_to_dict(leave))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave request")

    @app.route("/leaves/<int:leave_id>/approve", methods=["PATCH"], endpoint="approve_leave")
    @admin_required
    def approve_leave(leave_id: int):
        user = g.current_user
        try:
            leave, adjustment = service.approve_leave(
                current_role=user.role,
                approver_id=user.employee_id,
                leave_id=leave_id,
                pay_status=json_body().get("payStatus"),
            )
            return success("Leave approved successfully", leave_to_dict(leave), payrollAdjustment=adjustment)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to approve leave")

    @app.route("/leaves/<int:leave_id>/reject", methods=["PATCH"], endpoint="reject_leave")
    @admin_required
    def reject_leave(leave_id: int):
        user = g.current_user
        try:
            leave = service.reject_leave(
                current_role=user.role,
                rejecter_id=user.employee_id,
                leave_id=leave_id,
                reason=json_body().get("reason"),
            )
            return success("Leave rejected successfully", leave_to_dict(leave))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to reject leave")

    @app.route("/leaves/<int:leave_id>", methods=["PATCH"], endpoint="update_leave")
    @login_required
    def update_leave(leave_id: int):
        user = g.current_user
        try:
            leave = service.update_leave(
                current_role=user.role, actor_id=user.employee_id, leave_id=leave_id, payload=json_body()
            )
            return success("Leave request updated successfully", leave_to_dict(leave))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to update leave request")

    @app.route("/leaves/<int:leave_id>", methods=["DELETE"], endpoint="delete_leave")
    @login_required
    def delete_leave(leave_id: int):
        user = g.current_user
        try:
            service.delete_leave(current_role=user.role, actor_id=user.employee_id, leave_id=leave_id)
            return success("Leave request deleted successfully")
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to delete leave request")

    @app.route("/leaves/bulk-approve", methods=["POST"], endpoint="bulk_approve_leaves")
    @admin_required
    def bulk_approve_leaves():
        user = g.current_user
        body = json_body()
        try:
            out = service.bulk_approve(
                current_role=user.role,
                approver_id=user.employee_id,
                leave_ids=body.get("leaveIds"),
                pay_status=body.get("payStatus"),
            )
            s = out["summary"]
            return success(
                f"Bulk approval completed: {s['successful']} successful, {s['failed']} failed",
                results=out["results"],
                summary=s,
            )
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Bulk approval failed")

    @app.route("/leaves/bulk-reject", methods=["POST"], endpoint="bulk_reject_leaves")
    @admin_required
    def bulk_reject_leaves():
        user = g.current_user
        body = json_body()
        try:
            out = service.bulk_reject(
                current_role=user.role,
                rejecter_id=user.employee_id,
                leave_ids=body.get("leaveIds"),
                reason=body.get("reason"),
            )
            s = out["summary"]
            return success(
                f"Bulk rejection completed: {s['successful']} successful, {s['failed']} failed",
                results=out["results"],
                summary=s,
            )
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Bulk rejection failed")

    @app.route("/leaves/bulk-delete", methods=["POST"], endpoint="bulk_delete_leaves")
    @login_required
    def bulk_delete_leaves():
        user = g.current_user
        try:
            out = service.bulk_delete(
                current_role=user.role, actor_id=user.employee_id, leave_ids=json_body().get("leaveIds")
            )
            s = out["summary"]
            return success(
                f"Bulk deletion completed: {s['successful']} successful, {s['failed']} failed",
                results=out["results"],
                summary=s,
            )
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Bulk deletion failed")

    @app.route("/leaves/stats", methods=["GET"], endpoint="leave_stats")
    @login_required
    def leave_stats():
        user = g.current_user
        try:
            data = service.stats(current_role=user.role, actor_id=user.employee_id, year=query_int("year"))
            return success("Leave statistics", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave statistics")

    @app.route("/leaves/type-summary", methods=["GET"], endpoint="leave_type_summary")
    @login_required
    def leave_type_summary():
        user = g.current_user
        try:
            data = service.type_summary(current_role=user.role, actor_id=user.employee_id, year=query_int("year"))
            return success("Leave type summary", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave type summary")

    @app.route("/leaves/balance", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance():
        user = g.current_user
        try:
            data = service.balance(
                current_role=user.role, actor_id=user.employee_id, employee_id=query_int("employeeId")
            )
            return success("Leave balance", data)
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load leave balance")

    @app.route("/leaves/departments", methods=["GET"], endpoint="leave_departments")
    @admin_required
    def leave_departments():
        try:
            return success("Departments", service.departments(current_role=g.current_user.role))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to load departments")

    @app.route("/leaves/export", methods=["GET"], endpoint="export_leaves")
    @admin_required
    def export_leaves():
        try:
            rows = service.export(current_role=g.current_user.role, filters=_filters_from_query())
            return success("Leave export", rows, count=len(rows))
        except DomainError as e:
            return domain_error(e)
        except Exception as e:
            return server_error(e, "Failed to export leaves")
