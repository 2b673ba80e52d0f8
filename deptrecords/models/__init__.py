from deptrecords.models.hod import HOD
from deptrecords.models.professor import Professor
from deptrecords.models.class_group import Class
from deptrecords.models.student import Student

__all__ = ["HOD", "Professor", "Class", "Student"]
