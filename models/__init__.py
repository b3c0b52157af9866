from models.catalog import (
    Role, SubRole, RoleSubRole, Skill, GradingEdge,
    SoftSkill, RoleSoftSkillRequirement
)
from models.employee import Employee, EmployeeRole, EmployeeSkill, SoftSkillScore

__all__ = [
    'Role', 'SubRole', 'RoleSubRole', 'Skill', 'GradingEdge',
    'SoftSkill', 'RoleSoftSkillRequirement',
    'Employee', 'EmployeeRole', 'EmployeeSkill', 'SoftSkillScore'
]
