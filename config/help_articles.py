"""
Docebo Help Center articles
Keyword table used to answer help questions with links to help.docebo.com
"""

HELP_CENTER_URL = "https://help.docebo.com"
HELP_SEARCH_URL = "https://help.docebo.com/hc/en-us/search?utf8=%E2%9C%93&query={query}"
COMMUNITY_URL = "https://community.docebo.com"
API_DOCS_URL = "https://help.docebo.com/hc/en-us/sections/360004313314-API"
VIDEO_TUTORIALS_URL = "https://help.docebo.com/hc/en-us/sections/360004274394-Video-Tutorials"
CONTACT_SUPPORT_URL = "https://help.docebo.com/hc/en-us/requests/new"

HELP_ARTICLES = [
    # User Management
    {
        "keywords": ["user", "create user", "add user", "manage user", "user management"],
        "title": "How to Create and Manage Users",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669114-How-to-Create-and-Manage-Users",
        "snippet": "Learn how to create new users, edit user profiles, manage user status, and set user permissions in Docebo.",
        "section": "User Management"
    },
    {
        "keywords": ["bulk", "import users", "csv users", "mass user"],
        "title": "Bulk User Import and Management",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669134-Bulk-User-Import-via-CSV",
        "snippet": "Import multiple users at once using CSV files, including user profiles, roles, and group assignments.",
        "section": "User Management"
    },

    # Enrollment Management
    {
        "keywords": ["enroll", "enrollment", "assign course", "course assignment"],
        "title": "How to Enroll Users in Courses",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669154-How-to-Enroll-Users-in-Courses",
        "snippet": "Step-by-step guide to enrolling individual users or groups in courses, setting enrollment rules, and managing assignments.",
        "section": "Enrollment Management"
    },
    {
        "keywords": ["learning plan", "learning path", "lp enrollment"],
        "title": "Learning Plans and Learning Paths",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669174-Learning-Plans-and-Learning-Paths",
        "snippet": "Create and manage learning plans, enroll users in learning paths, and track progress through structured learning.",
        "section": "Learning Plans"
    },
    {
        "keywords": ["bulk enroll", "mass enrollment", "group enrollment"],
        "title": "Bulk Enrollment Methods",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669194-Bulk-Enrollment-Options",
        "snippet": "Different methods for enrolling multiple users in courses including CSV import, automatic rules, and group assignments.",
        "section": "Enrollment Management"
    },

    # Course Management
    {
        "keywords": ["course", "create course", "course management", "course settings"],
        "title": "Course Creation and Management",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669214-Course-Creation-and-Management",
        "snippet": "Complete guide to creating courses, setting up course materials, configuring completion rules, and managing course settings.",
        "section": "Course Management"
    },
    {
        "keywords": ["assignment type", "required optional", "course assignment rules"],
        "title": "Course Assignment Types and Rules",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669234-Assignment-Types-and-Rules",
        "snippet": "Understanding required vs optional assignments, setting enrollment rules, and managing course access permissions.",
        "section": "Course Management"
    },

    # API and Integration
    {
        "keywords": ["api", "integration", "api setup", "developer"],
        "title": "Docebo API Getting Started Guide",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669254-API-Getting-Started",
        "snippet": "Set up API access, authentication, and basic API calls for integrating with external systems.",
        "section": "API and Integration"
    },
    {
        "keywords": ["oauth", "authentication", "api credentials"],
        "title": "API Authentication and OAuth Setup",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669274-OAuth-Authentication-Setup",
        "snippet": "Configure OAuth2 authentication, manage API credentials, and secure API access for your integrations.",
        "section": "API and Integration"
    },

    # Reporting and Analytics
    {
        "keywords": ["report", "analytics", "reporting", "data export"],
        "title": "Reports and Analytics Guide",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669294-Reports-and-Analytics",
        "snippet": "Generate reports, export data, create custom analytics, and track learning progress across your organization.",
        "section": "Reporting"
    },
    {
        "keywords": ["completion", "progress tracking", "user progress"],
        "title": "Tracking User Progress and Completion",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669314-User-Progress-Tracking",
        "snippet": "Monitor user progress, set completion criteria, generate completion reports, and manage learning outcomes.",
        "section": "Reporting"
    },

    # Administrative Settings
    {
        "keywords": ["admin", "settings", "configuration", "setup"],
        "title": "Administrative Settings and Configuration",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669334-Admin-Settings-Configuration",
        "snippet": "Configure platform settings, manage administrative roles, set up notifications, and customize your Docebo environment.",
        "section": "Administration"
    },
    {
        "keywords": ["permissions", "roles", "access control"],
        "title": "User Roles and Permissions Management",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669354-Roles-and-Permissions",
        "snippet": "Set up user roles, configure permissions, manage access levels, and control what users can see and do.",
        "section": "Administration"
    },

    # Troubleshooting
    {
        "keywords": ["error", "troubleshoot", "problem", "issue", "not working"],
        "title": "Common Issues and Troubleshooting",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669374-Common-Issues-Troubleshooting",
        "snippet": "Resolve common problems, troubleshoot enrollment issues, fix user access problems, and get help with technical difficulties.",
        "section": "Troubleshooting"
    },
    {
        "keywords": ["login", "access", "cannot access", "password"],
        "title": "Login and Access Issues",
        "url": "https://help.docebo.com/hc/en-us/articles/360015669394-Login-Access-Issues",
        "snippet": "Solve login problems, reset passwords, resolve access issues, and manage user authentication difficulties.",
        "section": "Troubleshooting"
    },
]
